"""Dispatch of commands and component events to roster operations.

``reduce`` is the navigation state machine: given the screen a control
belongs to and the event it produced, it applies at most one roster mutation
and says what the message should show next. It never touches nextcord, so the
whole flow is testable with a plain dict document.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Type, Union

from .config import COMMAND_PREFIXES, PLAYER_COLOR, TEAM_COLOR, UNASSIGNED_VALUE, logger
from .errors import RosterError
from .formatting import HELP_TEXT, format_player, format_player_list, format_team, format_team_list
from .roster import (
    POINT_OPERATIONS,
    Data,
    add_player,
    add_team,
    adjust_team_points,
    assign_player,
    get_player,
    get_team,
    normalize_name,
    remove_player,
    remove_team,
    rename_player,
    rename_team,
    set_player_team,
    toggle_captain,
    toggle_membership,
    toggle_top_player,
)
from .screens import (
    Card,
    ManageTeam,
    ManageTeamAssign,
    ManageTeamCaptains,
    ManageTeamsHome,
    ManageTeamTopPlayers,
    ModalSpec,
    PlayerAdded,
    PlayerAssignTeam,
    PlayerConfirmRemove,
    PlayerHome,
    PlayerList,
    Screen,
    TeamConfirmRemove,
    TeamHome,
    TeamPoints,
    TeamRoster,
    TeamRosterMember,
    TextInputSpec,
    decode_custom_id,
    encode_custom_id,
    error_card,
    muted_card,
    page_count,
    render,
    teams_list_card,
)


# EVENTS
@dataclass
class Press:
    action: str
    args: List[str] = field(default_factory=list)
    message_id: Optional[int] = None


@dataclass
class Choose:
    action: str
    value: str
    message_id: Optional[int] = None


@dataclass
class Submit:
    action: str
    fields: Dict[str, str]
    args: List[str] = field(default_factory=list)


Event = Union[Press, Choose, Submit]


@dataclass
class Outcome:
    """What to do with the interaction after an event was reduced.

    ``screen``/``card`` replace the clicked message, or the message named by
    ``message_id`` when answering a modal submission.
    """

    screen: Optional[Screen] = None
    card: Optional[Card] = None
    notice: Optional[Card] = None
    reply: Optional[Card] = None
    modal: Optional[ModalSpec] = None
    delete: bool = False
    message_id: Optional[int] = None


CANCELED = "Canceled."
Handler = Callable[[Data, Screen, Event, object], Outcome]
HANDLERS: Dict[Tuple[Type[Screen], str], Handler] = {}


def on(screen_type: Type[Screen], *actions: str):
    def decorator(fn: Handler) -> Handler:
        for action in actions:
            HANDLERS[(screen_type, action)] = fn
        return fn
    return decorator


def missing_subject(data: Data, screen: Screen) -> Optional[Outcome]:
    player = getattr(screen, "player", None)
    team = getattr(screen, "team", None)
    if team is not None and not get_team(data, team):
        return Outcome(notice=error_card("Team not found."))
    if player is not None and not isinstance(screen, TeamRosterMember) and not get_player(data, player):
        return Outcome(notice=error_card("Player not found."))
    return None


def reduce(data: Data, screen: Screen, event: Event, rng=random) -> Outcome:
    handler = HANDLERS.get((type(screen), event.action))
    if handler is None and event.action == "open":
        handler = show
    if handler is None:
        logger.warning(f"No handler for {type(screen).__name__}:{event.action}")
        return Outcome(notice=error_card("Unknown action."))

    missing = missing_subject(data, screen)
    if missing:
        return missing

    try:
        return handler(data, screen, event, rng)
    except RosterError as e:
        return Outcome(notice=error_card(str(e)))


def show(data, screen, event, rng) -> Outcome:
    return Outcome(screen=screen)


def close(data, screen, event, rng) -> Outcome:
    return Outcome(delete=True)


def message_ref(event: Event) -> str:
    message_id = getattr(event, "message_id", None)
    return str(message_id) if message_id else ""


def parse_message_id(value: str) -> Optional[int]:
    return int(value) if value.isdigit() else None


# PLAYER SCREENS
@on(PlayerAdded, "top")
def player_added_top(data, screen, event, rng):
    toggle_top_player(data, screen.player)
    return Outcome(screen=screen)


@on(PlayerHome, "toggle_top")
def player_toggle_top(data, screen, event, rng):
    toggle_top_player(data, screen.player)
    return Outcome(screen=screen)


@on(PlayerHome, "toggle_captain")
def player_toggle_captain(data, screen, event, rng):
    toggle_captain(data, screen.player)
    return Outcome(screen=screen)


on(PlayerHome, "done")(close)


@on(PlayerHome, "rename")
def player_rename(data, screen, event, rng):
    player = get_player(data, screen.player)
    return Outcome(modal=ModalSpec(
        custom_id=encode_custom_id(screen, "rename_modal", message_ref(event)),
        title="Update player name",
        inputs=[TextInputSpec("name", "New player name", value=player["tag"])],
    ))


@on(PlayerHome, "rename_modal")
def player_rename_submit(data, screen, event, rng):
    player = get_player(data, screen.player)
    renamed = rename_player(data, player["tag"], event.fields.get("name", ""))
    return Outcome(
        screen=PlayerHome(normalize_name(renamed["tag"])),
        message_id=parse_message_id(event.args[0]) if event.args else None,
        reply=Card("Player updated.", color=TEAM_COLOR),
    )


@on(PlayerAssignTeam, "select")
def player_assign_select(data, screen, event, rng):
    if event.value == UNASSIGNED_VALUE:
        set_player_team(data, screen.player, "")
    else:
        team = get_team(data, event.value)
        set_player_team(data, screen.player, team["name"] if team else "")
    return Outcome(screen=PlayerHome(screen.player))


@on(PlayerAssignTeam, "back")
@on(PlayerConfirmRemove, "cancel")
def player_cancel(data, screen, event, rng):
    return Outcome(screen=PlayerHome(screen.player), notice=muted_card(CANCELED))


@on(PlayerConfirmRemove, "confirm")
def player_remove_confirm(data, screen, event, rng):
    remove_player(data, screen.player)
    return Outcome(card=error_card("Player removed."))


@on(PlayerList, "prev", "next")
def player_list_page(data, screen, event, rng):
    step = 1 if event.action == "next" else -1
    page = min(max(screen.page + step, 0), page_count(data) - 1)
    return Outcome(screen=PlayerList(page))


on(PlayerList, "close")(close)


# TEAM SCREENS
on(TeamHome, "done")(close)


@on(TeamHome, "rename")
def team_rename(data, screen, event, rng):
    team = get_team(data, screen.team)
    return Outcome(modal=ModalSpec(
        custom_id=encode_custom_id(screen, "rename_modal", message_ref(event)),
        title="Update team name",
        inputs=[TextInputSpec("name", "New team name", value=team["name"])],
    ))


@on(TeamHome, "rename_modal")
def team_rename_submit(data, screen, event, rng):
    team = get_team(data, screen.team)
    renamed = rename_team(data, team["name"], event.fields.get("name", ""))
    return Outcome(
        screen=TeamHome(normalize_name(renamed["name"])),
        message_id=parse_message_id(event.args[0]) if event.args else None,
        reply=Card("Team updated.", color=TEAM_COLOR),
    )


@on(TeamPoints, "select")
def team_points_select(data, screen, event, rng):
    if event.value not in POINT_OPERATIONS:
        return Outcome(notice=error_card("Unknown points operation."))
    return Outcome(modal=ModalSpec(
        custom_id=encode_custom_id(TeamHome(screen.team), "points_modal", event.value, message_ref(event)),
        title="Adjust points",
        inputs=[TextInputSpec("amount", "Amount (whole number)", placeholder="e.g. 5")],
    ))


@on(TeamHome, "points_modal")
def team_points_submit(data, screen, event, rng):
    operation = event.args[0] if event.args else ""
    if operation not in POINT_OPERATIONS:
        return Outcome(notice=error_card("Unknown points operation."))
    adjust_team_points(data, screen.team, operation, event.fields.get("amount", ""))
    return Outcome(
        screen=TeamHome(screen.team),
        message_id=parse_message_id(event.args[1]) if len(event.args) > 1 else None,
        reply=Card("Points updated.", color=TEAM_COLOR),
    )


@on(TeamPoints, "back")
@on(TeamRoster, "back")
def team_back(data, screen, event, rng):
    return Outcome(screen=TeamHome(screen.team))


@on(TeamRoster, "select")
def team_roster_select(data, screen, event, rng):
    if not get_player(data, event.value):
        return Outcome(screen=TeamHome(screen.team))
    return Outcome(screen=TeamRosterMember(screen.team, normalize_name(event.value)))


@on(TeamRosterMember, "toggle_captain")
def team_member_toggle_captain(data, screen, event, rng):
    if not get_player(data, screen.player):
        return Outcome(screen=TeamHome(screen.team))
    toggle_captain(data, screen.player)
    return Outcome(screen=screen)


@on(TeamRosterMember, "unassign")
def team_member_unassign(data, screen, event, rng):
    if not get_player(data, screen.player):
        return Outcome(screen=TeamHome(screen.team))
    set_player_team(data, screen.player, "")
    return Outcome(screen=TeamRoster(screen.team))


@on(TeamRosterMember, "back")
def team_member_back(data, screen, event, rng):
    return Outcome(screen=TeamRoster(screen.team))


@on(TeamConfirmRemove, "confirm")
def team_remove_confirm(data, screen, event, rng):
    remove_team(data, screen.team)
    return Outcome(card=error_card("Team removed."))


@on(TeamConfirmRemove, "cancel")
def team_remove_cancel(data, screen, event, rng):
    return Outcome(screen=TeamHome(screen.team), notice=muted_card(CANCELED))


# MANAGE-TEAMS BROWSER
@on(ManageTeamsHome, "select")
def manage_teams_select(data, screen, event, rng):
    team_key = event.args[0] if event.args else ""
    if not get_team(data, team_key):
        return Outcome(notice=error_card("Team not found."))
    return Outcome(screen=ManageTeam(normalize_name(team_key)))


on(ManageTeam, "done")(close)


@on(ManageTeamAssign, "back")
@on(ManageTeamCaptains, "back")
@on(ManageTeamTopPlayers, "back")
def manage_team_back(data, screen, event, rng):
    return Outcome(screen=ManageTeam(screen.team))


@on(ManageTeamAssign, "select")
def manage_team_assign_select(data, screen, event, rng):
    if not get_player(data, event.value):
        return Outcome(screen=ManageTeam(screen.team))
    status = toggle_membership(data, screen.team, event.value)
    return Outcome(screen=ManageTeam(screen.team, status))


@on(ManageTeamCaptains, "select")
def manage_team_captain_select(data, screen, event, rng):
    if not get_player(data, event.value):
        return Outcome(screen=ManageTeam(screen.team))
    player = toggle_captain(data, event.value)
    status = f"{'Added' if player['captain'] else 'Removed'} captain: {player['tag']}"
    return Outcome(screen=ManageTeam(screen.team, status))


@on(ManageTeamTopPlayers, "select")
def manage_team_top_select(data, screen, event, rng):
    if not get_player(data, event.value):
        return Outcome(screen=ManageTeam(screen.team))
    player = toggle_top_player(data, event.value)
    status = f"{'Added' if player['topPlayer'] else 'Removed'} top player: {player['tag']}"
    return Outcome(screen=ManageTeam(screen.team, status))


# ENTRY POINTS FOR INTERACTIONS
def handle_component(data: Data, custom_id: str, values: List[str], message_id: Optional[int] = None, rng=random) -> Outcome:
    try:
        screen, action, extra = decode_custom_id(custom_id)
    except ValueError as e:
        logger.warning(f"Ignoring component {custom_id!r}: {e}")
        return Outcome(notice=error_card("Unknown action."))

    if values:
        event = Choose(action, values[0], message_id)
    else:
        event = Press(action, extra, message_id)
    return reduce(data, screen, event, rng)


def handle_modal(data: Data, custom_id: str, fields: Dict[str, str], rng=random) -> Outcome:
    try:
        screen, action, extra = decode_custom_id(custom_id)
    except ValueError as e:
        logger.warning(f"Ignoring modal {custom_id!r}: {e}")
        return Outcome(notice=error_card("Unknown action."))
    return reduce(data, screen, Submit(action, fields, extra), rng)


# TEXT COMMANDS
@dataclass
class Command:
    prefix: str
    root: str
    action: str
    args: List[str]


def parse_command(content: str) -> Optional[Command]:
    trimmed = content.strip()
    prefix = next((p for p in COMMAND_PREFIXES if trimmed.startswith(p)), None)
    if not prefix:
        return None

    raw = trimmed[len(prefix):].strip()
    if not raw:
        return None

    tokens = raw.split()
    return Command(
        prefix=prefix,
        root=tokens[0].lower(),
        action=tokens[1].lower() if len(tokens) > 1 else "",
        args=tokens[2:],
    )


def handle_player_command(action: str, args: List[str], data: Data, rng=random) -> str:
    if action == "add":
        name = " ".join(args).strip()
        if not name:
            return "Usage: /player add [playerName]"
        player = add_player(data, name)
        return f"Added player: {player['tag']}"

    if action == "assign":
        if not args:
            return "Usage: /player assign [playerName] (optional target team)"
        manual_team = " ".join(args[1:]).strip()
        return assign_player(data, args[0], manual_team or None, rng).status

    if action == "manage":
        name = " ".join(args).strip()
        if not name:
            return "Usage: /player manage [playerName]"
        player = get_player(data, name)
        if not player:
            return f"Player not found: {name}"
        return format_player(player)

    if action == "list":
        return format_player_list(data)

    return "Unknown /player command. Try: add, assign, manage, list"


def handle_team_command(action: str, args: List[str], data: Data) -> str:
    if action == "add":
        name = " ".join(args).strip()
        if not name:
            return "Usage: /team add [teamName]"
        team = add_team(data, name)
        return f"Added team: {team['name']}"

    if action == "manage":
        name = " ".join(args).strip()
        if not name:
            return "Usage: /team manage [teamName]"
        team = get_team(data, name)
        if not team:
            return f"Team not found: {name}"
        return format_team(team["name"], data)

    return "Unknown /team command. Try: add, manage"


def handle_message_content(data: Data, content: str, rng=random) -> Optional[str]:
    """Answer a prefix command, or return None when the text is not one."""
    command = parse_command(content)
    if not command:
        return None

    try:
        if command.root == "player":
            return handle_player_command(command.action, command.args, data, rng)
        if command.root == "teams" and not command.action:
            return format_team_list(data)
        if command.root in ("team", "teams"):
            return handle_team_command(command.action, command.args, data)
        if command.root == "help":
            return HELP_TEXT
    except RosterError as e:
        return str(e)

    return "Unknown command."


# SLASH COMMANDS
def slash_player_add(data: Data, name: str) -> Card:
    try:
        player = add_player(data, name)
    except RosterError as e:
        return error_card(str(e))
    return render(PlayerAdded(normalize_name(player["tag"])), data)


def slash_player_assign(data: Data, name: str, team: Optional[str] = None, rng=random) -> Card:
    try:
        assignment = assign_player(data, name, team, rng)
    except RosterError as e:
        return error_card(str(e))
    return Card(assignment.status, color=PLAYER_COLOR)


def slash_player_manage(data: Data, name: str) -> Card:
    if not get_player(data, name):
        return error_card(f"Player not found: {name}")
    return render(PlayerHome(normalize_name(name)), data)


def slash_player_list(data: Data) -> Card:
    return render(PlayerList(0), data)


def slash_team_add(data: Data, name: str) -> Card:
    try:
        team = add_team(data, name)
    except RosterError as e:
        return error_card(str(e))
    return Card(f"Added team: {team['name']}", color=TEAM_COLOR)


def slash_team_manage(data: Data, name: Optional[str] = None) -> Card:
    if not name or not name.strip():
        return render(ManageTeamsHome(), data)
    if not get_team(data, name):
        return error_card(f"Team not found: {name}")
    return render(TeamHome(normalize_name(name)), data)


def slash_teams(data: Data) -> Card:
    return teams_list_card(data)


def outcome_card(outcome: Outcome, data: Data) -> Optional[Card]:
    """The card an outcome puts on screen, rendered against ``data``."""
    if outcome.card is not None:
        return outcome.card
    if outcome.screen is not None:
        return render(outcome.screen, data)
    return None
