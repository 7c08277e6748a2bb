#!/usr/bin/env python3
"""
Router test suite
Drives component clicks, modal submissions, text commands and slash handlers
against an in-memory roster document
"""

import pytest

from rosterbot.roster import add_player, add_team, get_player, get_team, set_player_team
from rosterbot.router import (
    handle_component,
    handle_message_content,
    handle_modal,
    outcome_card,
    parse_command,
    slash_player_add,
    slash_player_assign,
    slash_player_list,
    slash_player_manage,
    slash_team_add,
    slash_team_manage,
    slash_teams,
)
from rosterbot.screens import (
    ManageTeam,
    ManageTeamAssign,
    ManageTeamCaptains,
    ManageTeamsHome,
    ManageTeamTopPlayers,
    PlayerAdded,
    PlayerAssignTeam,
    PlayerConfirmRemove,
    PlayerHome,
    PlayerList,
    TeamConfirmRemove,
    TeamHome,
    TeamPoints,
    TeamRoster,
    TeamRosterMember,
    render,
)
from rosterbot.storage import empty_data


class FixedRng:
    def random(self):
        return 0.5


@pytest.fixture
def data():
    doc = empty_data()
    add_player(doc, "Bob")
    add_team(doc, "Red")
    add_team(doc, "Blue")
    return doc


def click(data, custom_id, message_id=None):
    return handle_component(data, custom_id, [], message_id, FixedRng())


def choose(data, custom_id, value, message_id=None):
    return handle_component(data, custom_id, [value], message_id, FixedRng())


# PLAYER FLOWS
def test_player_added_top_toggle(data):
    outcome = click(data, "player_add:top:bob")
    assert get_player(data, "bob")["topPlayer"] is True
    assert outcome_card(outcome, data).rows[0][0].label == "Top Player (set)"


def test_player_home_toggles_stay_on_screen(data):
    outcome = click(data, "player:toggle_captain:bob")
    assert outcome.screen == PlayerHome("bob")
    assert get_player(data, "bob")["captain"] is True


def test_player_home_done_deletes_message(data):
    assert click(data, "player:done:bob").delete


def test_open_assign_team_then_select(data):
    outcome = click(data, "player_assign:open:bob")
    assert outcome.screen == PlayerAssignTeam("bob")

    outcome = choose(data, "player_assign:select:bob", "blue")
    assert outcome.screen == PlayerHome("bob")
    assert get_player(data, "bob")["team"] == "Blue"

    choose(data, "player_assign:select:bob", "__unassigned__")
    assert get_player(data, "bob")["team"] == ""


def test_assign_team_cancel(data):
    outcome = click(data, "player_assign:back:bob")
    assert outcome.screen == PlayerHome("bob")
    assert outcome.notice.title == "Canceled."


def test_remove_player_confirm_and_cancel(data):
    outcome = click(data, "player_remove:cancel:bob")
    assert outcome.screen == PlayerHome("bob")
    assert outcome.notice.title == "Canceled."
    assert get_player(data, "bob")

    outcome = click(data, "player_remove:confirm:bob")
    assert outcome.card.title == "Player removed."
    assert outcome.card.rows == []
    assert get_player(data, "bob") is None


def test_click_on_removed_player_reports_not_found(data):
    click(data, "player_remove:confirm:bob")
    outcome = click(data, "player:toggle_top:bob")
    assert outcome.notice.title == "Player not found."
    assert outcome.screen is None


def test_player_rename_modal_round_trip(data):
    outcome = click(data, "player:rename:bob", message_id=123)
    assert outcome.modal.custom_id == "player:rename_modal:bob:123"
    assert outcome.modal.inputs[0].value == "Bob"

    outcome = handle_modal(data, outcome.modal.custom_id, {"name": "Robert"})
    assert outcome.screen == PlayerHome("robert")
    assert outcome.message_id == 123
    assert outcome.reply.title == "Player updated."
    assert get_player(data, "robert")["tag"] == "Robert"


def test_player_rename_conflict_is_a_notice(data):
    add_player(data, "Alice")
    outcome = handle_modal(data, "player:rename_modal:bob:", {"name": "alice"})
    assert outcome.notice.title == "A player with that name already exists."
    assert outcome.message_id is None
    assert get_player(data, "bob")["tag"] == "Bob"


def test_player_list_paging_clamps(data):
    for i in range(12):
        add_player(data, f"p{i:02d}")
    assert click(data, "player_list:next:0").screen == PlayerList(1)
    assert click(data, "player_list:next:1").screen == PlayerList(1)
    assert click(data, "player_list:prev:0").screen == PlayerList(0)
    assert click(data, "player_list:close:0").delete


# TEAM FLOWS
def test_points_select_opens_modal_and_submit_updates(data):
    outcome = choose(data, "team_points:select:red", "add", message_id=55)
    assert outcome.modal.custom_id == "team:points_modal:red:add:55"

    outcome = handle_modal(data, outcome.modal.custom_id, {"amount": "5"})
    assert get_team(data, "red")["points"] == 5
    assert outcome.screen == TeamHome("red")
    assert outcome.message_id == 55
    assert outcome.reply.title == "Points updated."

    handle_modal(data, "team:points_modal:red:set:55", {"amount": "-2"})
    assert get_team(data, "red")["points"] == -2


def test_points_submit_rejects_fractions(data):
    outcome = handle_modal(data, "team:points_modal:red:add:55", {"amount": "1.5"})
    assert outcome.notice.title == "Amount must be a whole number."
    assert outcome.reply is None
    assert get_team(data, "red")["points"] == 0


def test_team_rename_cascades_and_patches_message(data):
    set_player_team(data, "bob", "Red")
    outcome = handle_modal(data, "team:rename_modal:red:77", {"name": "Crimson"})

    assert outcome.screen == TeamHome("crimson")
    assert outcome.message_id == 77
    assert outcome.reply.title == "Team updated."
    assert get_player(data, "bob")["team"] == "Crimson"


def test_roster_member_flow(data):
    set_player_team(data, "bob", "Red")
    assert click(data, "team_roster:open:red").screen == TeamRoster("red")

    outcome = choose(data, "team_roster:select:red", "bob")
    assert outcome.screen == TeamRosterMember("red", "bob")

    click(data, "team_member:toggle_captain:red:bob")
    assert get_player(data, "bob")["captain"] is True

    outcome = click(data, "team_member:unassign:red:bob")
    assert outcome.screen == TeamRoster("red")
    assert get_player(data, "bob")["team"] == ""


def test_roster_member_gone_falls_back_to_team(data):
    outcome = click(data, "team_member:toggle_captain:red:ghost")
    assert outcome.screen == TeamHome("red")


def test_remove_team_confirm_unassigns_members(data):
    set_player_team(data, "bob", "Red")
    outcome = click(data, "team_remove:cancel:red")
    assert outcome.screen == TeamHome("red")
    assert outcome.notice.title == "Canceled."

    outcome = click(data, "team_remove:confirm:red")
    assert outcome.card.title == "Team removed."
    assert get_team(data, "red") is None
    assert get_player(data, "bob")["team"] == ""


def test_missing_team_and_unknown_actions(data):
    assert click(data, "team:rename:purple").notice.title == "Team not found."
    assert click(data, "team:explode:red").notice.title == "Unknown action."
    assert click(data, "garbage").notice.title == "Unknown action."
    assert handle_modal(data, "garbage", {}).notice.title == "Unknown action."


# MANAGE-TEAMS BROWSER
def test_manage_teams_browser(data):
    outcome = click(data, "manage_teams:select:red")
    assert outcome.screen == ManageTeam("red")

    assert click(data, "manage_assign:open:red").screen.scope == "manage_assign"

    outcome = choose(data, "manage_assign:select:red", "bob")
    assert outcome.screen.status == "Assigned Bob to Red"
    assert get_player(data, "bob")["team"] == "Red"

    outcome = choose(data, "manage_captains:select:red", "bob")
    assert outcome.screen.status == "Added captain: Bob"

    outcome = choose(data, "manage_top:select:red", "bob")
    assert outcome.screen.status == "Added top player: Bob"
    assert "**Last action:** Added top player: Bob" in outcome_card(outcome, data).description

    outcome = choose(data, "manage_assign:select:red", "bob")
    assert outcome.screen.status == "Unassigned Bob"
    assert get_player(data, "bob")["team"] == ""

    assert click(data, "manage_top:back:red").screen == ManageTeam("red")
    assert click(data, "manage_team:done:red").delete


def test_manage_teams_select_unknown_team(data):
    assert click(data, "manage_teams:select:purple").notice.title == "Team not found."


# TEXT COMMANDS
@pytest.mark.parametrize("content", ["hello", "", "!", "/   "])
def test_non_commands_are_ignored(data, content):
    assert parse_command(content) is None
    assert handle_message_content(data, content) is None


def test_parse_command():
    command = parse_command("  !Player ADD Big Bob ")
    assert command.prefix == "!"
    assert command.root == "player"
    assert command.action == "add"
    assert command.args == ["Big", "Bob"]


def test_player_text_commands(data):
    assert handle_message_content(data, "!player add Big Al") == "Added player: Big Al"
    assert handle_message_content(data, "/player add big al") == "Player already exists: Big Al"
    assert handle_message_content(data, "/player add") == "Usage: /player add [playerName]"
    assert handle_message_content(data, "/player assign") == "Usage: /player assign [playerName] (optional target team)"
    assert handle_message_content(data, "/player assign Bob Blue") == "Assigned Bob to Blue"
    assert handle_message_content(data, "/player manage Bob") == (
        "Tag: Bob\nTeam: Blue\nTop Player: no\nCaptain: no"
    )
    assert handle_message_content(data, "/player manage Ghost") == "Player not found: Ghost"
    assert handle_message_content(data, "/player list") == "Big Al - Unassigned\nBob - Blue"
    assert handle_message_content(data, "/player fly") == "Unknown /player command. Try: add, assign, manage, list"


def test_auto_assign_text_command(data):
    reply = handle_message_content(data, "/player assign Bob", FixedRng())
    assert reply == "Assigned to Red while keeping rosters balanced."


def test_assign_without_teams():
    doc = empty_data()
    add_player(doc, "Bob")
    assert handle_message_content(doc, "/player assign Bob") == "No teams exist yet. Create one with /team add first."


def test_team_text_commands(data):
    assert handle_message_content(data, "!team add Green") == "Added team: Green"
    assert handle_message_content(data, "/teams add red") == "Team already exists: Red"
    assert handle_message_content(data, "/team add") == "Usage: /team add [teamName]"
    assert handle_message_content(data, "/team manage Purple") == "Team not found: Purple"
    set_player_team(data, "bob", "Red")
    assert handle_message_content(data, "/teams manage red") == (
        "Team: Red\nPlayers: Bob\nCaptains: (none)\nPoints: 0"
    )
    assert handle_message_content(data, "/teams") == "Blue - 0 pts\nGreen - 0 pts\nRed - 0 pts"
    assert handle_message_content(data, "/team party") == "Unknown /team command. Try: add, manage"


def test_help_and_unknown_root(data):
    assert handle_message_content(data, "/help").startswith("Commands (prefix with ! or /):")
    assert handle_message_content(data, "!dance") == "Unknown command."


# SLASH COMMANDS
def test_slash_player_add_and_duplicate(data):
    card = slash_player_add(data, "Al")
    assert card.title == "Al added"
    assert card.rows[0][0].custom_id == "player_add:top:al"

    assert slash_player_add(data, "AL").title == "Player already exists: Al"


def test_slash_player_assign(data):
    assert slash_player_assign(data, "Bob", "Blue").title == "Assigned Bob to Blue"
    assert slash_player_assign(data, "Ghost").title == "Player not found: Ghost"
    assert slash_player_assign(data, "Bob", "Purple").title == "Team not found: Purple"


def test_slash_manage_and_lists(data):
    assert slash_player_manage(data, "BOB").title == "Player: Bob"
    assert slash_player_manage(data, "ghost").title == "Player not found: ghost"
    assert slash_player_list(data).description.startswith("Bob - Unassigned")

    assert slash_team_add(data, "Green").title == "Added team: Green"
    assert slash_team_manage(data, "red").title == "Team: Red"
    assert slash_team_manage(data, None).title == "Manage Teams"
    assert slash_team_manage(data, "purple").title == "Team not found: purple"
    assert slash_teams(data).title == "Teams"


# DISCORD LIMITS
def test_custom_ids_fit_discord_limit_for_longest_names():
    doc = empty_data()
    player = "p" * 36
    team = "紅隊隊長"
    add_player(doc, player)
    add_team(doc, team)
    set_player_team(doc, player, team)
    message_id = 2 ** 64 - 1

    screens = [
        PlayerAdded(player), PlayerHome(player), PlayerAssignTeam(player), PlayerConfirmRemove(player),
        PlayerList(0), TeamHome(team), TeamPoints(team), TeamRoster(team), TeamRosterMember(team, player),
        TeamConfirmRemove(team), ManageTeamsHome(), ManageTeam(team), ManageTeamAssign(team),
        ManageTeamCaptains(team), ManageTeamTopPlayers(team),
    ]
    custom_ids = [item.custom_id for screen in screens for row in render(screen, doc).rows for item in row]
    custom_ids.append(click(doc, f"player:rename:{'p' * 36}", message_id).modal.custom_id)
    team_key = render(TeamHome(team), doc).rows[0][0].custom_id.split(":")[2]
    custom_ids.append(click(doc, f"team:rename:{team_key}", message_id).modal.custom_id)
    custom_ids.append(choose(doc, f"team_points:select:{team_key}", "deduct", message_id).modal.custom_id)

    assert len(custom_ids) > 30
    assert max(len(custom_id) for custom_id in custom_ids) <= 100
