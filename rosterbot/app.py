from __future__ import annotations

import argparse
import random
from typing import List, Optional

import nextcord
from nextcord import Interaction, SlashOption
from nextcord.ext import commands

from .config import COMMAND_PREFIXES, ERROR_COLOR, MAX_NAME_LENGTH, Config, logger
from .formatting import split_message
from .router import (
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
from .screens import Card
from .storage import RosterStore
from .views import (
    interaction_custom_id,
    interaction_values,
    modal_fields,
    respond_component,
    respond_modal,
    send_card,
)


def failure_card(custom_id: str = "") -> Card:
    if custom_id:
        return Card("Something went wrong handling that action.", f"Action: {custom_id}", ERROR_COLOR)
    return Card("Something went wrong.", color=ERROR_COLOR)


async def report_failure(interaction: Interaction, custom_id: str = "") -> None:
    if interaction.response.is_done():
        return
    try:
        await send_card(interaction, failure_card(custom_id), ephemeral=True)
    except nextcord.HTTPException as e:
        logger.error(f"Could not report failure to the user: {e}")


def build_bot(store: RosterStore, guild_ids: Optional[List[int]] = None, rng=random) -> commands.Bot:
    intents = nextcord.Intents.default()
    intents.message_content = True
    bot = commands.Bot(command_prefix=COMMAND_PREFIXES, intents=intents, default_guild_ids=guild_ids)

    @bot.event
    async def on_ready():
        logger.info(f"Logged in as {bot.user}")
        try:
            await bot.sync_all_application_commands()
            logger.info("Commands synced")
        except nextcord.HTTPException as e:
            logger.error(f"Command sync failed: {e}")

    # PREFIX COMMANDS
    @bot.event
    async def on_message(message: nextcord.Message):
        if message.author.bot or parse_command(message.content) is None:
            return

        async with store.transaction() as data:
            response = handle_message_content(data, message.content, rng)
        if not response:
            return
        for chunk in split_message(response):
            await message.channel.send(chunk)

    # COMPONENTS AND MODALS
    @bot.event
    async def on_interaction(interaction: Interaction):
        if interaction.type == nextcord.InteractionType.component:
            await on_component(interaction)
        elif interaction.type == nextcord.InteractionType.modal_submit:
            await on_modal_submit(interaction)
        else:
            await bot.process_application_commands(interaction)

    async def on_component(interaction: Interaction):
        custom_id = interaction_custom_id(interaction)
        message_id = interaction.message.id if interaction.message else None
        try:
            async with store.transaction() as data:
                outcome = handle_component(data, custom_id, interaction_values(interaction), message_id, rng)
                card = outcome_card(outcome, data)
            await respond_component(interaction, outcome, card)
        except Exception:
            logger.exception(f"Failed to handle component interaction {custom_id}")
            await report_failure(interaction, custom_id)

    async def on_modal_submit(interaction: Interaction):
        custom_id = interaction_custom_id(interaction)
        try:
            async with store.transaction() as data:
                outcome = handle_modal(data, custom_id, modal_fields(interaction.data), rng)
                card = outcome_card(outcome, data)
            await respond_modal(interaction, outcome, card)
        except Exception:
            logger.exception(f"Failed to handle modal submission {custom_id}")
            await report_failure(interaction, custom_id)

    @bot.event
    async def on_application_command_error(interaction: Interaction, error: Exception):
        logger.error("Failed to handle slash command", exc_info=error)
        await report_failure(interaction)

    # SLASH COMMANDS
    @bot.slash_command(name="player", description="Manage players")
    async def player(interaction: Interaction):
        pass

    @player.subcommand(name="add", description="Add a player")
    async def player_add(
        interaction: Interaction,
        name: str = SlashOption(description="Player tag", max_length=MAX_NAME_LENGTH),
    ):
        async with store.transaction() as data:
            card = slash_player_add(data, name)
        await send_card(interaction, card)

    @player.subcommand(name="assign", description="Assign a player to a team")
    async def player_assign(
        interaction: Interaction,
        name: str = SlashOption(description="Player tag", max_length=MAX_NAME_LENGTH),
        team: str = SlashOption(description="Target team (optional)", max_length=MAX_NAME_LENGTH, required=False, default=None),
    ):
        async with store.transaction() as data:
            card = slash_player_assign(data, name, team, rng)
        await send_card(interaction, card)

    @player.subcommand(name="manage", description="Show player details")
    async def player_manage(
        interaction: Interaction,
        name: str = SlashOption(description="Player tag", max_length=MAX_NAME_LENGTH),
    ):
        await send_card(interaction, slash_player_manage(store.data, name))

    @player.subcommand(name="list", description="List all players")
    async def player_list(interaction: Interaction):
        await send_card(interaction, slash_player_list(store.data))

    @bot.slash_command(name="team", description="Manage teams")
    async def team(interaction: Interaction):
        pass

    @team.subcommand(name="add", description="Add a team")
    async def team_add(
        interaction: Interaction,
        name: str = SlashOption(description="Team name", max_length=MAX_NAME_LENGTH),
    ):
        async with store.transaction() as data:
            card = slash_team_add(data, name)
        await send_card(interaction, card)

    @team.subcommand(name="manage", description="Show team details")
    async def team_manage(
        interaction: Interaction,
        name: str = SlashOption(description="Team name", max_length=MAX_NAME_LENGTH, required=False, default=None),
    ):
        await send_card(interaction, slash_team_manage(store.data, name))

    @bot.slash_command(name="teams", description="List teams with points and players")
    async def teams(interaction: Interaction):
        await send_card(interaction, slash_teams(store.data))

    return bot


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discord bot for managing players and teams.")
    parser.add_argument(
        "--test",
        nargs=argparse.REMAINDER,
        metavar="TEXT",
        help="run a text command locally and print the reply; with no text, start an interactive session",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    if args.test is not None:
        from .cli import run_local_test, run_local_test_interactive

        text = " ".join(args.test).strip()
        if text:
            run_local_test(text)
        else:
            run_local_test_interactive()
        return

    try:
        Config.validate_config()
    except ValueError as e:
        logger.error(str(e))
        raise SystemExit(f"❌ {e}. Add it to your environment or .env file.")

    store = RosterStore(Config.DATA_PATH)
    bot = build_bot(store, Config.guild_ids())
    bot.run(Config.BOT_TOKEN)
