"""Player and team operations over the roster document.

The document is the plain dict persisted by ``storage``::

    {"players": {key: {"tag", "team", "topPlayer", "captain"}},
     "teams":   {key: {"name", "points"}}}

Keys are normalized names. Every operation mutates the document in place and
raises a ``RosterError`` subclass when it cannot be applied.
"""
from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .config import MAX_NAME_LENGTH, logger
from .errors import DuplicateEntity, InvalidAmount, InvalidName, NoTeamsExist, NotFound

Player = Dict[str, Any]
Team = Dict[str, Any]
Data = Dict[str, Dict[str, Any]]

POINT_OPERATIONS = ("add", "deduct", "set")
BALANCED_SPREAD = 4
WHOLE_NUMBER = re.compile(r"[+-]?\d+", re.ASCII)


def normalize_name(value: str) -> str:
    return value.strip().casefold()


def sort_key(value: str) -> str:
    return value.casefold()


# LOOKUPS
def get_player(data: Data, name: str) -> Optional[Player]:
    return data["players"].get(normalize_name(name))


def get_team(data: Data, name: str) -> Optional[Team]:
    return data["teams"].get(normalize_name(name))


def require_player(data: Data, name: str) -> Player:
    player = get_player(data, name)
    if not player:
        raise NotFound(f"Player not found: {name}")
    return player


def require_team(data: Data, name: str) -> Team:
    team = get_team(data, name)
    if not team:
        raise NotFound(f"Team not found: {name}")
    return team


def is_member(player: Player, team_name: str) -> bool:
    return bool(player.get("team")) and normalize_name(player["team"]) == normalize_name(team_name)


def team_members(data: Data, team_name: str) -> List[Player]:
    return [p for p in data["players"].values() if is_member(p, team_name)]


def sorted_players(data: Data) -> List[Player]:
    return sorted(data["players"].values(), key=lambda p: sort_key(p["tag"]))


def sorted_teams(data: Data) -> List[Team]:
    return sorted(data["teams"].values(), key=lambda t: sort_key(t["name"]))


def roster_order(members: List[Player]) -> List[Player]:
    """Captains and top players first, then alphabetical."""
    return sorted(
        members,
        key=lambda p: (0 if p.get("captain") or p.get("topPlayer") else 1, sort_key(p["tag"])),
    )


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidName("Name cannot be empty.")
    if len(quote(cleaned, safe="")) > MAX_NAME_LENGTH:
        raise InvalidName(f"Name is too long (max {MAX_NAME_LENGTH} characters).")
    return cleaned


# PLAYERS
def add_player(data: Data, name: str) -> Player:
    tag = _clean_name(name)
    key = normalize_name(tag)
    existing = data["players"].get(key)
    if existing:
        raise DuplicateEntity(f"Player already exists: {existing['tag']}")

    player = {"tag": tag, "team": "", "topPlayer": False, "captain": False}
    data["players"][key] = player
    logger.info(f"Added player {tag}")
    return player


def rename_player(data: Data, current_name: str, next_name: str) -> Player:
    current_key = normalize_name(current_name)
    player = data["players"].get(current_key)
    if not player:
        raise NotFound("Player not found.")
    tag = _clean_name(next_name)
    next_key = normalize_name(tag)
    if next_key != current_key and next_key in data["players"]:
        raise DuplicateEntity("A player with that name already exists.")

    del data["players"][current_key]
    player["tag"] = tag
    data["players"][next_key] = player
    logger.info(f"Renamed player {current_key} -> {tag}")
    return player


def remove_player(data: Data, name: str) -> Player:
    key = normalize_name(name)
    if key not in data["players"]:
        raise NotFound(f"Player not found: {name}")
    player = data["players"].pop(key)
    logger.info(f"Removed player {player['tag']}")
    return player


def toggle_top_player(data: Data, name: str) -> Player:
    player = require_player(data, name)
    player["topPlayer"] = not player.get("topPlayer", False)
    return player


def toggle_captain(data: Data, name: str) -> Player:
    player = require_player(data, name)
    player["captain"] = not player.get("captain", False)
    return player


def set_player_team(data: Data, name: str, team_name: str) -> Player:
    """Set the free-text team label; an empty string unassigns the player."""
    player = require_player(data, name)
    player["team"] = (team_name or "").strip()
    return player


# TEAMS
def add_team(data: Data, name: str) -> Team:
    team_name = _clean_name(name)
    key = normalize_name(team_name)
    existing = data["teams"].get(key)
    if existing:
        raise DuplicateEntity(f"Team already exists: {existing['name']}")

    team = {"name": team_name, "points": 0}
    data["teams"][key] = team
    logger.info(f"Added team {team_name}")
    return team


def rename_team(data: Data, current_name: str, next_name: str) -> Team:
    current_key = normalize_name(current_name)
    team = data["teams"].get(current_key)
    if not team:
        raise NotFound("Team not found.")
    team_name = _clean_name(next_name)
    next_key = normalize_name(team_name)
    if next_key != current_key and next_key in data["teams"]:
        raise DuplicateEntity("A team with that name already exists.")

    del data["teams"][current_key]
    team["name"] = team_name
    data["teams"][next_key] = team

    for player in data["players"].values():
        if player.get("team") and normalize_name(player["team"]) == current_key:
            player["team"] = team_name
    logger.info(f"Renamed team {current_key} -> {team_name}")
    return team


def remove_team(data: Data, name: str) -> Team:
    key = normalize_name(name)
    if key not in data["teams"]:
        raise NotFound(f"Team not found: {name}")

    for player in data["players"].values():
        if player.get("team") and normalize_name(player["team"]) == key:
            player["team"] = ""
    team = data["teams"].pop(key)
    logger.info(f"Removed team {team['name']}")
    return team


def parse_amount(raw: Any) -> int:
    if isinstance(raw, bool):
        raise InvalidAmount("Amount must be a whole number.")
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    if not WHOLE_NUMBER.fullmatch(text):
        raise InvalidAmount("Amount must be a whole number.")
    return int(text)


def adjust_team_points(data: Data, name: str, operation: str, amount: Any) -> Team:
    if operation not in POINT_OPERATIONS:
        raise ValueError(f"Unknown points operation: {operation}")
    team = require_team(data, name)
    value = parse_amount(amount)

    points = team.get("points") or 0
    if operation == "add":
        team["points"] = points + value
    elif operation == "deduct":
        team["points"] = points - value
    else:
        team["points"] = value
    logger.info(f"Points for {team['name']}: {operation} {value} -> {team['points']}")
    return team


def toggle_membership(data: Data, team_name: str, player_name: str) -> str:
    """Unassign a member of the team, or assign a non-member to it."""
    team = require_team(data, team_name)
    player = require_player(data, player_name)
    if is_member(player, team["name"]):
        player["team"] = ""
        return f"Unassigned {player['tag']}"
    player["team"] = team["name"]
    return f"Assigned {player['tag']} to {team['name']}"


# ASSIGNMENT
@dataclass
class TeamStats:
    team: Team
    count: int = 0
    top_count: int = 0


@dataclass
class Assignment:
    team: Team
    status: str
    spread: int


def build_team_stats(data: Data, exclude_tag: Optional[str] = None) -> List[TeamStats]:
    stats = {key: TeamStats(team) for key, team in data["teams"].items()}
    exclude_key = normalize_name(exclude_tag) if exclude_tag else None

    for player in data["players"].values():
        if exclude_key and normalize_name(player["tag"]) == exclude_key:
            continue
        if not player.get("team"):
            continue
        entry = stats.get(normalize_name(player["team"]))
        if not entry:
            continue
        entry.count += 1
        if player.get("topPlayer"):
            entry.top_count += 1

    return list(stats.values())


def choose_team_for_assignment(player: Player, data: Data, rng=random) -> Assignment:
    """Pick the team that keeps roster sizes level.

    Roster size dominates; a top player is steered away from teams that
    already have top players; ``rng.random()`` only breaks ties.
    """
    stats = build_team_stats(data, player["tag"])
    if not stats:
        raise NoTeamsExist()

    min_count = min(entry.count for entry in stats)
    best_index = 0
    best_score = float("inf")
    for index, entry in enumerate(stats):
        roster_score = max(entry.count - min_count, 0)
        top_score = entry.top_count if player.get("topPlayer") else 0
        score = roster_score * 10 + top_score * 5 + rng.random()
        if score < best_score:
            best_score = score
            best_index = index

    best = stats[best_index]
    counts_after = [entry.count + (1 if i == best_index else 0) for i, entry in enumerate(stats)]
    spread = max(counts_after) - min(counts_after)
    if spread <= BALANCED_SPREAD:
        status = f"Assigned to {best.team['name']} while keeping rosters balanced."
    else:
        status = f"Assigned to {best.team['name']}; distribution is slightly uneven."
    return Assignment(best.team, status, spread)


def assign_player(data: Data, name: str, team_name: Optional[str] = None, rng=random) -> Assignment:
    """Assign to ``team_name`` when given, otherwise let the heuristic choose."""
    player = require_player(data, name)
    if team_name and team_name.strip():
        team = require_team(data, team_name)
        player["team"] = team["name"]
        return Assignment(team, f"Assigned {player['tag']} to {team['name']}", 0)

    assignment = choose_team_for_assignment(player, data, rng)
    player["team"] = assignment.team["name"]
    logger.info(f"Auto-assigned {player['tag']} to {assignment.team['name']} (spread {assignment.spread})")
    return assignment
