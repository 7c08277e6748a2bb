from __future__ import annotations

from typing import Any, Dict, List, Optional

import nextcord
from nextcord import Interaction

from .config import logger
from .screens import ButtonSpec, Card, ModalSpec, SelectSpec

BUTTON_STYLES = {
    "primary": nextcord.ButtonStyle.primary,
    "secondary": nextcord.ButtonStyle.secondary,
    "success": nextcord.ButtonStyle.success,
    "danger": nextcord.ButtonStyle.danger,
}

# Discord component limits
BUTTON_LABEL_LIMIT = 80
OPTION_TEXT_LIMIT = 100
MODAL_TITLE_LIMIT = 45
EMBED_TITLE_LIMIT = 256
EMBED_DESCRIPTION_LIMIT = 4096


def clip(text: Optional[str], limit: int) -> Optional[str]:
    if text is None or len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def card_to_embed(card: Card) -> nextcord.Embed:
    return nextcord.Embed(
        title=clip(card.title, EMBED_TITLE_LIMIT),
        description=clip(card.description, EMBED_DESCRIPTION_LIMIT) or None,
        color=card.color,
    )


def card_to_view(card: Card) -> Optional[nextcord.ui.View]:
    """Build a view carrying the card's components.

    The items have no callbacks of their own: every click is routed by its
    custom id from ``on_interaction``, so messages keep working across restarts.
    """
    if not card.rows:
        return None

    view = nextcord.ui.View(timeout=None, auto_defer=False)
    for row_index, row in enumerate(card.rows):
        for spec in row:
            if isinstance(spec, ButtonSpec):
                view.add_item(nextcord.ui.Button(
                    label=clip(spec.label, BUTTON_LABEL_LIMIT),
                    style=BUTTON_STYLES.get(spec.style, nextcord.ButtonStyle.secondary),
                    custom_id=spec.custom_id,
                    disabled=spec.disabled,
                    row=row_index,
                ))
            elif isinstance(spec, SelectSpec):
                view.add_item(nextcord.ui.Select(
                    custom_id=spec.custom_id,
                    placeholder=clip(spec.placeholder, OPTION_TEXT_LIMIT),
                    options=[
                        nextcord.SelectOption(
                            label=clip(option.label, OPTION_TEXT_LIMIT),
                            value=option.value,
                            description=clip(option.description, OPTION_TEXT_LIMIT),
                        )
                        for option in spec.options
                    ],
                    disabled=spec.disabled,
                    row=row_index,
                ))
    return view


def modal_from_spec(spec: ModalSpec) -> nextcord.ui.Modal:
    modal = nextcord.ui.Modal(
        clip(spec.title, MODAL_TITLE_LIMIT), custom_id=spec.custom_id, timeout=None, auto_defer=False
    )
    for field in spec.inputs:
        modal.add_item(nextcord.ui.TextInput(
            label=field.label,
            custom_id=field.custom_id,
            style=nextcord.TextInputStyle.short,
            default_value=field.value or None,
            placeholder=field.placeholder or None,
            required=True,
        ))
    return modal


def message_kwargs(card: Card) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"embed": card_to_embed(card)}
    view = card_to_view(card)
    if view is not None:
        kwargs["view"] = view
    return kwargs


# INTERACTION PAYLOADS
def interaction_custom_id(interaction: Interaction) -> str:
    return (interaction.data or {}).get("custom_id", "")


def interaction_values(interaction: Interaction) -> List[str]:
    return list((interaction.data or {}).get("values", []))


def modal_fields(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for row in (data or {}).get("components", []):
        for component in row.get("components", []):
            if "custom_id" in component:
                fields[component["custom_id"]] = component.get("value") or ""
    return fields


# RESPONSES
async def send_card(interaction: Interaction, card: Card, ephemeral: bool = False) -> None:
    await interaction.response.send_message(ephemeral=ephemeral, **message_kwargs(card))


async def respond_component(interaction: Interaction, outcome, card: Optional[Card]) -> None:
    """Apply a reduced component event to the message that was clicked."""
    if outcome.modal:
        await interaction.response.send_modal(modal_from_spec(outcome.modal))
        return

    if outcome.delete:
        await interaction.response.defer()
        await interaction.message.delete()
        return

    if card is not None:
        await interaction.response.edit_message(embed=card_to_embed(card), view=card_to_view(card))
        if outcome.notice:
            await interaction.followup.send(embed=card_to_embed(outcome.notice), ephemeral=True)
        return

    if outcome.notice:
        await send_card(interaction, outcome.notice, ephemeral=True)
    else:
        await interaction.response.defer()


async def respond_modal(interaction: Interaction, outcome, card: Optional[Card]) -> None:
    """Answer a modal submission and patch the screen it was opened from."""
    if outcome.reply:
        await send_card(interaction, outcome.reply)
    elif outcome.notice:
        await send_card(interaction, outcome.notice, ephemeral=True)
    else:
        await interaction.response.defer()

    if card is None or not outcome.message_id or interaction.channel is None:
        return
    try:
        message = await interaction.channel.fetch_message(outcome.message_id)
        await message.edit(embed=card_to_embed(card), view=card_to_view(card))
    except nextcord.HTTPException as e:
        logger.error(f"Failed to update message {outcome.message_id}: {e}")
