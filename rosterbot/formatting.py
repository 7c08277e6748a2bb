from __future__ import annotations

from .roster import Data, Player, get_team, sorted_players, sorted_teams, team_members


def yes_no(flag) -> str:
    return "yes" if flag else "no"


def format_player(player: Player) -> str:
    team_label = player.get("team") or "(unassigned)"
    return "\n".join([
        f"Tag: {player['tag']}",
        f"Team: {team_label}",
        f"Top Player: {yes_no(player.get('topPlayer'))}",
        f"Captain: {yes_no(player.get('captain'))}",
    ])


def format_player_list(data: Data) -> str:
    players = sorted_players(data)
    if not players:
        return "No players yet."
    return "\n".join(f"{p['tag']} - {p.get('team') or 'Unassigned'}" for p in players)


def format_team(team_name: str, data: Data) -> str:
    members = team_members(data, team_name)
    captains = [p for p in members if p.get("captain")]
    team = get_team(data, team_name)
    points = (team or {}).get("points") or 0

    return "\n".join([
        f"Team: {team_name}",
        f"Players: {', '.join(p['tag'] for p in members) if members else '(none)'}",
        f"Captains: {', '.join(p['tag'] for p in captains) if captains else '(none)'}",
        f"Points: {points}",
    ])


def format_team_list(data: Data) -> str:
    teams = sorted_teams(data)
    if not teams:
        return "No teams yet."
    return "\n".join(f"{t['name']} - {t.get('points') or 0} pts" for t in teams)


def badges(player: Player) -> str:
    return f"{'👑' if player.get('captain') else ''}{'⭐' if player.get('topPlayer') else ''}"


def with_badges(player: Player) -> str:
    marks = badges(player)
    return f"{marks} {player['tag']}" if marks else player["tag"]


HELP_TEXT = "\n".join([
    "Commands (prefix with ! or /):",
    "player add <name>",
    "player assign <name> [team]",
    "player manage <name>",
    "player list",
    "team add <name>",
    "team manage <name>",
    "teams",
    "teams manage <name>",
])


def split_message(text: str, limit: int = 2000) -> list[str]:
    """Split on line boundaries so each chunk fits in one Discord message."""
    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks
