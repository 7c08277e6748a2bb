"""Roster bot package.

Player and team management for a Discord community, split into modules:
- config: environment, logging and constants
- errors: domain exceptions
- storage: JSON document persistence and the single-writer store
- roster: player/team operations and the assignment heuristic
- formatting: plain-text renderings
- screens: interactive screens, custom ids and card rendering
- router: component, modal, text and slash command handling
- views: nextcord embeds, views, modals and responses
- cli: local test mode
- app: bot wiring and entry point
"""

from .config import Config, logger
from .errors import (
    RosterError,
    NotFound,
    DuplicateEntity,
    InvalidName,
    InvalidAmount,
    NoTeamsExist,
    StorageReadFailure,
)
from .storage import load_data, save_data, RosterStore
from .roster import (
    add_player,
    rename_player,
    remove_player,
    toggle_top_player,
    toggle_captain,
    set_player_team,
    add_team,
    rename_team,
    remove_team,
    adjust_team_points,
    toggle_membership,
    choose_team_for_assignment,
    assign_player,
)
from .screens import decode_custom_id, encode_custom_id, render
from .router import handle_component, handle_modal, handle_message_content, reduce
from .app import build_bot, main

__all__ = [
    # Config / errors
    "Config", "logger",
    "RosterError", "NotFound", "DuplicateEntity", "InvalidName", "InvalidAmount", "NoTeamsExist", "StorageReadFailure",
    # Storage
    "load_data", "save_data", "RosterStore",
    # Roster
    "add_player", "rename_player", "remove_player", "toggle_top_player", "toggle_captain", "set_player_team",
    "add_team", "rename_team", "remove_team", "adjust_team_points", "toggle_membership",
    "choose_team_for_assignment", "assign_player",
    # Screens / routing
    "decode_custom_id", "encode_custom_id", "render",
    "handle_component", "handle_modal", "handle_message_content", "reduce",
    # App
    "build_bot", "main",
]
