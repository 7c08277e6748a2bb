"""Interactive screens and their platform-neutral rendering.

Every message the bot sends with components shows exactly one ``Screen``.
A component's custom id is ``scope:action[:arg...]``: the scope names the
screen it belongs to, the first args rebuild that screen's fields, and any
remaining args belong to the action. Nothing else about navigation is stored.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import ClassVar, Dict, List, Optional, Tuple, Type, Union
from urllib.parse import quote, unquote

from .config import (
    ERROR_COLOR,
    MAX_SELECT_OPTIONS,
    MUTED_COLOR,
    PAGE_SIZE,
    PLAYER_COLOR,
    TEAM_COLOR,
    UNASSIGNED_VALUE,
)
from .formatting import with_badges
from .roster import (
    Data,
    get_player,
    get_team,
    normalize_name,
    roster_order,
    sorted_players,
    sorted_teams,
    team_members,
)

NO_OPTIONS_VALUE = "__none__"
TEAMS_PER_ROW = 5


# CARD PRIMITIVES
@dataclass
class ButtonSpec:
    custom_id: str
    label: str
    style: str = "secondary"
    disabled: bool = False


@dataclass
class OptionSpec:
    label: str
    value: str
    description: Optional[str] = None


@dataclass
class SelectSpec:
    custom_id: str
    placeholder: str
    options: List[OptionSpec]
    disabled: bool = False


Component = Union[ButtonSpec, SelectSpec]


@dataclass
class Card:
    title: str
    description: str = ""
    color: int = PLAYER_COLOR
    rows: List[List[Component]] = field(default_factory=list)


@dataclass
class TextInputSpec:
    custom_id: str
    label: str
    value: str = ""
    placeholder: str = ""


@dataclass
class ModalSpec:
    custom_id: str
    title: str
    inputs: List[TextInputSpec]


def error_card(title: str) -> Card:
    return Card(title=title, color=ERROR_COLOR)


def muted_card(title: str) -> Card:
    return Card(title=title, color=MUTED_COLOR)


# SCREENS
SCREENS: Dict[str, Type["Screen"]] = {}


def register(cls):
    SCREENS[cls.scope] = cls
    return cls


@dataclass(frozen=True)
class Screen:
    scope: ClassVar[str] = ""

    def keys(self) -> Tuple[str, ...]:
        return tuple(str(getattr(self, f.name)) for f in fields(self) if f.metadata.get("encode", True))

    @classmethod
    def key_count(cls) -> int:
        return sum(1 for f in fields(cls) if f.metadata.get("encode", True))

    @classmethod
    def from_args(cls, args: List[str]) -> "Screen":
        return cls(*args)


@register
@dataclass(frozen=True)
class PlayerAdded(Screen):
    scope: ClassVar[str] = "player_add"
    player: str


@register
@dataclass(frozen=True)
class PlayerHome(Screen):
    scope: ClassVar[str] = "player"
    player: str


@register
@dataclass(frozen=True)
class PlayerAssignTeam(Screen):
    scope: ClassVar[str] = "player_assign"
    player: str


@register
@dataclass(frozen=True)
class PlayerConfirmRemove(Screen):
    scope: ClassVar[str] = "player_remove"
    player: str


@register
@dataclass(frozen=True)
class PlayerList(Screen):
    scope: ClassVar[str] = "player_list"
    page: int = 0

    @classmethod
    def from_args(cls, args: List[str]) -> "Screen":
        try:
            return cls(int(args[0]))
        except ValueError:
            raise ValueError(f"Bad page number: {args[0]!r}")


@register
@dataclass(frozen=True)
class TeamHome(Screen):
    scope: ClassVar[str] = "team"
    team: str


@register
@dataclass(frozen=True)
class TeamPoints(Screen):
    scope: ClassVar[str] = "team_points"
    team: str


@register
@dataclass(frozen=True)
class TeamRoster(Screen):
    scope: ClassVar[str] = "team_roster"
    team: str


@register
@dataclass(frozen=True)
class TeamRosterMember(Screen):
    scope: ClassVar[str] = "team_member"
    team: str
    player: str


@register
@dataclass(frozen=True)
class TeamConfirmRemove(Screen):
    scope: ClassVar[str] = "team_remove"
    team: str


@register
@dataclass(frozen=True)
class ManageTeamsHome(Screen):
    scope: ClassVar[str] = "manage_teams"


@register
@dataclass(frozen=True)
class ManageTeam(Screen):
    scope: ClassVar[str] = "manage_team"
    team: str
    status: str = field(default="", compare=False, metadata={"encode": False})


@register
@dataclass(frozen=True)
class ManageTeamAssign(Screen):
    scope: ClassVar[str] = "manage_assign"
    team: str


@register
@dataclass(frozen=True)
class ManageTeamCaptains(Screen):
    scope: ClassVar[str] = "manage_captains"
    team: str


@register
@dataclass(frozen=True)
class ManageTeamTopPlayers(Screen):
    scope: ClassVar[str] = "manage_top"
    team: str


# CUSTOM IDS
def encode_custom_id(screen: Screen, action: str, *extra) -> str:
    args = [quote(str(value), safe="") for value in (*screen.keys(), *extra)]
    return ":".join([screen.scope, action, *args])


def decode_custom_id(custom_id: str) -> Tuple[Screen, str, List[str]]:
    parts = custom_id.split(":")
    if len(parts) < 2 or not parts[1]:
        raise ValueError(f"Malformed custom id: {custom_id!r}")

    scope, action = parts[0], parts[1]
    cls = SCREENS.get(scope)
    if cls is None:
        raise ValueError(f"Unknown screen scope: {scope!r}")

    args = [unquote(part) for part in parts[2:]]
    count = cls.key_count()
    if len(args) < count:
        raise ValueError(f"Custom id {custom_id!r} is missing screen keys")
    return cls.from_args(args[:count]), action, args[count:]


def button(screen: Screen, action: str, label: str, style: str = "secondary", disabled: bool = False, *extra) -> ButtonSpec:
    return ButtonSpec(encode_custom_id(screen, action, *extra), label, style, disabled)


def select(screen: Screen, placeholder: str, options: List[OptionSpec], empty_placeholder: str = "") -> SelectSpec:
    capped = options[:MAX_SELECT_OPTIONS]
    if not capped:
        return SelectSpec(
            encode_custom_id(screen, "select"),
            empty_placeholder or placeholder,
            [OptionSpec(empty_placeholder or placeholder, NO_OPTIONS_VALUE)],
            disabled=True,
        )
    return SelectSpec(encode_custom_id(screen, "select"), placeholder, capped)


# RENDERING
def player_card(player) -> Card:
    description = "\n".join([
        f"**Team:** {player.get('team') or 'Unassigned'}",
        f"**Top Player:** {'Yes' if player.get('topPlayer') else 'No'}",
        f"**Captain:** {'Yes' if player.get('captain') else 'No'}",
    ])
    return Card(title=f"Player: {player['tag']}", description=description, color=PLAYER_COLOR)


def team_card(team, data: Data) -> Card:
    members = team_members(data, team["name"])
    captains = [p for p in members if p.get("captain")]
    description = "\n".join([
        f"**Points:** {team.get('points') or 0}",
        f"**Players:** {', '.join(p['tag'] for p in members) if members else 'None'}",
        f"**Captains:** {', '.join(p['tag'] for p in captains) if captains else 'None'}",
    ])
    return Card(title=f"Team: {team['name']}", description=description, color=TEAM_COLOR)


def manage_team_card(team, data: Data, status: str = "") -> Card:
    members = roster_order(team_members(data, team["name"]))
    lines = [with_badges(p) for p in members]
    sections = [
        f"**Team:** {team['name']}",
        f"**Players:** {chr(10).join(lines) if lines else 'None yet'}",
        "**What would you like to manage?**",
    ]
    if status:
        sections.append(f"**Last action:** {status}")
    return Card(title=f"Manage Team: {team['name']}", description="\n\n".join(sections), color=TEAM_COLOR)


def back_row(screen: Screen, label: str, action: str = "back") -> List[Component]:
    return [button(screen, action, label)]


def render_player_added(screen: PlayerAdded, data: Data) -> Card:
    player = get_player(data, screen.player)
    if not player:
        return error_card("Player not found.")
    top = player.get("topPlayer")
    return Card(
        title=f"{player['tag']} added",
        description=f"{player['tag']} added. Please select any additional player information below.",
        color=PLAYER_COLOR,
        rows=[[button(screen, "top", "Top Player (set)" if top else "Top Player", "success" if top else "secondary")]],
    )


def render_player_home(screen: PlayerHome, data: Data) -> Card:
    player = get_player(data, screen.player)
    if not player:
        return error_card("Player not found.")
    card = player_card(player)
    card.rows = [
        [
            button(screen, "rename", "Update name", "primary"),
            button(screen, "toggle_top", "Unset top player" if player.get("topPlayer") else "Assign top player"),
            button(screen, "toggle_captain", "Unset captain" if player.get("captain") else "Assign captain"),
        ],
        [
            button(PlayerAssignTeam(screen.player), "open", "Assign team", "primary"),
            button(PlayerConfirmRemove(screen.player), "open", "Remove player", "danger"),
            button(screen, "done", "I'm done, close this message"),
        ],
    ]
    return card


def render_player_assign_team(screen: PlayerAssignTeam, data: Data) -> Card:
    player = get_player(data, screen.player)
    if not player:
        return error_card("Player not found.")
    options = [OptionSpec("Unassigned", UNASSIGNED_VALUE)]
    options += [OptionSpec(t["name"], normalize_name(t["name"])) for t in sorted_teams(data)]
    card = player_card(player)
    card.rows = [
        [select(screen, "Select a team", options)],
        back_row(screen, "Cancel"),
    ]
    return card


def render_player_confirm_remove(screen: PlayerConfirmRemove, data: Data) -> Card:
    player = get_player(data, screen.player)
    if not player:
        return error_card("Player not found.")
    return Card(
        title=f"Remove player: {player['tag']}?",
        description="This will delete the player.",
        color=ERROR_COLOR,
        rows=[[button(screen, "confirm", "Confirm remove", "danger"), button(screen, "cancel", "Cancel")]],
    )


def page_count(data: Data) -> int:
    return max(1, -(-len(data["players"]) // PAGE_SIZE))


def render_player_list(screen: PlayerList, data: Data) -> Card:
    players = sorted_players(data)
    if not players:
        return Card(title="Players", description="No players registered yet.", color=PLAYER_COLOR)

    total_pages = page_count(data)
    page = min(max(screen.page, 0), total_pages - 1)
    current = PlayerList(page)
    start = page * PAGE_SIZE
    lines = [f"{with_badges(p)} - {p.get('team') or 'Unassigned'}" for p in players[start:start + PAGE_SIZE]]
    return Card(
        title="Players",
        description=f"{chr(10).join(lines)}\n\nPage {page + 1} of {total_pages}",
        color=PLAYER_COLOR,
        rows=[[
            button(current, "prev", "Previous", "secondary", page <= 0),
            button(current, "next", "Next", "secondary", page >= total_pages - 1),
            button(current, "close", "Close", "danger"),
        ]],
    )


def render_team_home(screen: TeamHome, data: Data) -> Card:
    team = get_team(data, screen.team)
    if not team:
        return error_card("Team not found.")
    card = team_card(team, data)
    card.rows = [
        [
            button(screen, "rename", "Update name", "primary"),
            button(TeamPoints(screen.team), "open", "Adjust points"),
            button(TeamRoster(screen.team), "open", "Manage roster", "primary"),
        ],
        [
            button(TeamConfirmRemove(screen.team), "open", "Remove team", "danger"),
            button(screen, "done", "I'm done, close this message"),
        ],
    ]
    return card


def render_team_points(screen: TeamPoints, data: Data) -> Card:
    team = get_team(data, screen.team)
    if not team:
        return error_card("Team not found.")
    options = [
        OptionSpec("Add points", "add"),
        OptionSpec("Deduct points", "deduct"),
        OptionSpec("Set points", "set"),
    ]
    card = team_card(team, data)
    card.rows = [
        [select(screen, "Choose how to adjust points", options)],
        back_row(screen, "Back to team"),
    ]
    return card


def render_team_roster(screen: TeamRoster, data: Data) -> Card:
    team = get_team(data, screen.team)
    if not team:
        return error_card("Team not found.")
    options = [OptionSpec(p["tag"], normalize_name(p["tag"])) for p in team_members(data, team["name"])]
    return Card(
        title=f"Roster: {team['name']}",
        description="Select a member to manage.",
        color=TEAM_COLOR,
        rows=[
            [select(screen, "Select a team member", options, "No members yet")],
            back_row(screen, "Back to team"),
        ],
    )


def render_team_roster_member(screen: TeamRosterMember, data: Data) -> Card:
    team = get_team(data, screen.team)
    member = get_player(data, screen.player)
    if not team or not member:
        return error_card("Team member not found.")
    return Card(
        title=f"Member: {member['tag']}",
        description=f"Captain: {'Yes' if member.get('captain') else 'No'}",
        color=PLAYER_COLOR,
        rows=[
            [
                button(screen, "toggle_captain", "Unset captain" if member.get("captain") else "Make captain"),
                button(screen, "unassign", "Remove from team", "danger"),
            ],
            back_row(screen, "Back to roster"),
        ],
    )


def render_team_confirm_remove(screen: TeamConfirmRemove, data: Data) -> Card:
    team = get_team(data, screen.team)
    if not team:
        return error_card("Team not found.")
    return Card(
        title=f"Remove team: {team['name']}?",
        description="This will delete the team and unassign its players.",
        color=ERROR_COLOR,
        rows=[[button(screen, "confirm", "Confirm remove", "danger"), button(screen, "cancel", "Cancel")]],
    )


def render_manage_teams_home(screen: ManageTeamsHome, data: Data) -> Card:
    teams = sorted_teams(data)
    capped = teams[:MAX_SELECT_OPTIONS]
    if not teams:
        return Card(title="Manage Teams", description="No teams yet. Add one with /team add.", color=TEAM_COLOR)

    note = f" (Showing first {MAX_SELECT_OPTIONS})" if len(teams) > MAX_SELECT_OPTIONS else ""
    buttons = [button(screen, "select", t["name"], "primary", False, normalize_name(t["name"])) for t in capped]
    rows = [buttons[i:i + TEAMS_PER_ROW] for i in range(0, len(buttons), TEAMS_PER_ROW)]
    return Card(title="Manage Teams", description=f"Select a team to manage.{note}", color=TEAM_COLOR, rows=rows)


def render_manage_team(screen: ManageTeam, data: Data) -> Card:
    team = get_team(data, screen.team)
    if not team:
        return error_card("Team not found.")
    card = manage_team_card(team, data, screen.status)
    card.rows = [
        [
            button(ManageTeamAssign(screen.team), "open", "Player Assignments", "primary"),
            button(ManageTeamCaptains(screen.team), "open", "Captains"),
        ],
        [
            button(ManageTeamTopPlayers(screen.team), "open", "Top Players"),
            button(screen, "done", "I'm done, close this message"),
        ],
    ]
    return card


def render_manage_team_assign(screen: ManageTeamAssign, data: Data) -> Card:
    team = get_team(data, screen.team)
    if not team:
        return error_card("Team not found.")
    options = [
        OptionSpec(p["tag"], normalize_name(p["tag"]), f"Currently: {p.get('team') or 'Unassigned'}")
        for p in sorted_players(data)
    ]
    card = manage_team_card(team, data)
    card.rows = [
        [select(screen, "Select a player", options, "No players yet")],
        back_row(screen, "Back to team"),
    ]
    return card


def _member_toggle_card(screen, data: Data, flag: str, on_label: str, off_label: str) -> Card:
    team = get_team(data, screen.team)
    if not team:
        return error_card("Team not found.")
    options = [
        OptionSpec(p["tag"], normalize_name(p["tag"]), on_label if p.get(flag) else off_label)
        for p in team_members(data, team["name"])
    ]
    card = manage_team_card(team, data)
    card.rows = [
        [select(screen, "Select a team member", options, "No members yet")],
        back_row(screen, "Back to team"),
    ]
    return card


def render_manage_team_captains(screen: ManageTeamCaptains, data: Data) -> Card:
    return _member_toggle_card(screen, data, "captain", "Captain", "Not captain")


def render_manage_team_top_players(screen: ManageTeamTopPlayers, data: Data) -> Card:
    return _member_toggle_card(screen, data, "topPlayer", "Top player", "Not top player")


RENDERERS = {
    PlayerAdded: render_player_added,
    PlayerHome: render_player_home,
    PlayerAssignTeam: render_player_assign_team,
    PlayerConfirmRemove: render_player_confirm_remove,
    PlayerList: render_player_list,
    TeamHome: render_team_home,
    TeamPoints: render_team_points,
    TeamRoster: render_team_roster,
    TeamRosterMember: render_team_roster_member,
    TeamConfirmRemove: render_team_confirm_remove,
    ManageTeamsHome: render_manage_teams_home,
    ManageTeam: render_manage_team,
    ManageTeamAssign: render_manage_team_assign,
    ManageTeamCaptains: render_manage_team_captains,
    ManageTeamTopPlayers: render_manage_team_top_players,
}


def render(screen: Screen, data: Data) -> Card:
    return RENDERERS[type(screen)](screen, data)


def teams_list_card(data: Data) -> Card:
    teams = sorted_teams(data)
    if not teams:
        return Card(title="Teams", description="No teams yet. Add one with `/team add`.", color=TEAM_COLOR)

    blocks = []
    for team in teams:
        members = [p["tag"] for p in team_members(data, team["name"])]
        blocks.append(
            f"**{team['name']}** - {team.get('points') or 0} pts\n"
            f"Players: {', '.join(members) if members else 'None yet'}"
        )
    return Card(title="Teams", description="\n\n".join(blocks), color=TEAM_COLOR)
