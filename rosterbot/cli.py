"""Local test mode: run text commands against the data file without Discord."""
from __future__ import annotations

import curses
import sys
from typing import Callable, List

from .config import logger
from .errors import RosterError
from .roster import (
    Data,
    get_player,
    get_team,
    rename_player,
    rename_team,
    set_player_team,
    sorted_teams,
    team_members,
    toggle_captain,
    toggle_top_player,
)
from .router import handle_message_content, parse_command
from .storage import fingerprint, load_data, save_data

Menu = Callable[..., int]
Prompt = Callable[[str], str]

MENU_HELP = "Use ↑/↓ to move, Enter to select, Esc to cancel."


def _menu_loop(stdscr, title: str, options: List[str], hint: str) -> int:
    try:
        curses.curs_set(0)
    except curses.error:
        pass  # terminal cannot hide the cursor

    selected = 0
    while True:
        stdscr.clear()
        header = [title] + ([hint] if hint else []) + [""]
        for row, text in enumerate(header):
            stdscr.addstr(row, 0, text)
        for index, option in enumerate(options):
            marker = "> " if index == selected else "  "
            attr = curses.A_REVERSE if index == selected else curses.A_NORMAL
            stdscr.addstr(len(header) + index, 0, f"{marker}{option}", attr)
        stdscr.addstr(len(header) + len(options) + 1, 0, MENU_HELP)
        stdscr.refresh()

        key = stdscr.getch()
        if key == curses.KEY_UP:
            selected = (selected - 1) % len(options)
        elif key == curses.KEY_DOWN:
            selected = (selected + 1) % len(options)
        elif key in (curses.KEY_ENTER, 10, 13):
            return selected
        elif key == 27:
            return -1


def select_menu(title: str, options: List[str], hint: str = "") -> int:
    """Arrow-key menu; returns the chosen index or -1 when cancelled."""
    if not options or not sys.stdin.isatty():
        return -1
    try:
        return curses.wrapper(_menu_loop, title, options, hint)
    except KeyboardInterrupt:
        return -1


class LocalSession:
    """Interactive manage flows over one loaded document, saving after each change."""

    def __init__(self, path: str | None = None, menu: Menu = select_menu, prompt: Prompt = input, out=print):
        self.path = path
        self.menu = menu
        self.prompt = prompt
        self.out = out
        self.data: Data = load_data(path)

    def save(self) -> None:
        save_data(self.data, self.path)

    def manage_player(self, name: str) -> None:
        player = get_player(self.data, name)
        if not player:
            self.out(f"Player not found: {name}")
            return

        while True:
            options = [
                "Update name",
                "Unset top player" if player.get("topPlayer") else "Assign top player",
                "Unset captain" if player.get("captain") else "Assign captain",
                "Assign team",
                "Back",
            ]
            choice = self.menu(f"Manage player: {player['tag']}", options, f"Team: {player.get('team') or 'Unassigned'}")
            if choice == -1 or options[choice] == "Back":
                return

            if choice == 0:
                next_name = self.prompt("New player name: ").strip()
                if not next_name:
                    continue
                try:
                    player = rename_player(self.data, player["tag"], next_name)
                except RosterError as e:
                    self.out(str(e))
                    continue
                self.save()
                self.out(f"Updated player name to {next_name}")
            elif choice == 1:
                toggle_top_player(self.data, player["tag"])
                self.save()
                self.out(f"Top Player: {'yes' if player['topPlayer'] else 'no'}")
            elif choice == 2:
                toggle_captain(self.data, player["tag"])
                self.save()
                self.out(f"Captain: {'yes' if player['captain'] else 'no'}")
            elif choice == 3:
                self.assign_team(player)

    def assign_team(self, player) -> None:
        teams = sorted_teams(self.data)
        if not teams:
            self.out("No teams available. Add a team first.")
            return

        options = ["Unassigned"] + [t["name"] for t in teams]
        choice = self.menu(f"Assign team for {player['tag']}", options, "Pick a team")
        if choice == -1:
            return
        set_player_team(self.data, player["tag"], "" if choice == 0 else options[choice])
        self.save()
        self.out(f"Team set to {player['team'] or 'Unassigned'}")

    def manage_team(self, name: str) -> None:
        team = get_team(self.data, name)
        if not team:
            self.out(f"Team not found: {name}")
            return

        options = ["Update name", "Manage roster", "Back"]
        while True:
            choice = self.menu(f"Manage team: {team['name']}", options, f"Points: {team.get('points') or 0}")
            if choice == -1 or options[choice] == "Back":
                return

            if choice == 0:
                next_name = self.prompt("New team name: ").strip()
                if not next_name:
                    continue
                try:
                    team = rename_team(self.data, team["name"], next_name)
                except RosterError as e:
                    self.out(str(e))
                    continue
                self.save()
                self.out(f"Updated team name to {next_name}")
            else:
                self.manage_roster(team)

    def manage_roster(self, team) -> None:
        while True:
            members = team_members(self.data, team["name"])
            if not members:
                self.out("No members on this team.")
                return

            options = [m["tag"] for m in members] + ["Back"]
            choice = self.menu(f"Roster: {team['name']}", options)
            if choice == -1 or choice == len(members):
                return
            self.manage_member(team, members[choice])

    def manage_member(self, team, member) -> None:
        while True:
            options = ["Unset captain" if member.get("captain") else "Make captain", "Remove from team", "Back"]
            choice = self.menu(f"Member: {member['tag']}", options, f"Captain: {'yes' if member.get('captain') else 'no'}")
            if choice == -1 or choice == 2:
                return

            if choice == 0:
                toggle_captain(self.data, member["tag"])
                self.save()
                self.out(f"Captain: {'yes' if member['captain'] else 'no'}")
            else:
                set_player_team(self.data, member["tag"], "")
                self.save()
                self.out(f"Removed {member['tag']} from {team['name']}")
                return


def run_local_test(text: str, path: str | None = None, out=print) -> None:
    data = load_data(path)
    before = fingerprint(data)
    response = handle_message_content(data, text)
    if fingerprint(data) != before:
        save_data(data, path)
    out(response if response else "(no response)")


def run_local_test_interactive(path: str | None = None, menu: Menu = select_menu, prompt: Prompt = input, out=print) -> None:
    out("Local test mode. Type a message (try /help). Press Ctrl+C to exit.")
    while True:
        try:
            line = prompt("local> ")
        except (EOFError, KeyboardInterrupt):
            out("")
            return

        command = parse_command(line)
        name = " ".join(command.args).strip() if command else ""
        if command and command.root == "player" and command.action == "manage":
            if not name:
                out("Usage: /player manage [playerName]")
            else:
                LocalSession(path, menu, prompt, out).manage_player(name)
        elif command and command.root in ("team", "teams") and command.action == "manage":
            if not name:
                out("Usage: /team manage [teamName]")
            else:
                LocalSession(path, menu, prompt, out).manage_team(name)
        else:
            run_local_test(line, path, out)
        logger.debug(f"Handled local command: {line!r}")
