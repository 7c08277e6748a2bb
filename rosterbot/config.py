import os
import logging

from dotenv import load_dotenv


# Load env early
load_dotenv()

# Logging configuration
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, log_level, logging.INFO),
)
logger = logging.getLogger("rosterbot")

# Reduce noisy libraries
logging.getLogger("nextcord").setLevel(logging.WARNING)
logging.getLogger("nextcord.gateway").setLevel(logging.WARNING)
logging.getLogger("nextcord.http").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)


def _optional_int(value: str | None) -> int | None:
    value = (value or "").strip()
    return int(value) if value.isdigit() else None


class Config:
    """Bot configuration read from the environment."""

    # Discord
    BOT_TOKEN: str | None = os.getenv("DISCORD_BOT_TOKEN")
    GUILD_ID: int | None = _optional_int(os.getenv("DISCORD_GUILD_ID"))

    # Storage
    DATA_PATH: str = os.getenv("ROSTERBOT_DATA_PATH", os.path.join("data", "data.json"))

    @classmethod
    def validate_config(cls) -> None:
        if not cls.BOT_TOKEN:
            raise ValueError("DISCORD_BOT_TOKEN environment variable is required")
        if cls.GUILD_ID is None:
            logger.info("DISCORD_GUILD_ID not set - registering global slash commands")

    @classmethod
    def guild_ids(cls) -> list[int] | None:
        return [cls.GUILD_ID] if cls.GUILD_ID else None


COMMAND_PREFIXES = ("!", "/")
PAGE_SIZE = 10
MAX_SELECT_OPTIONS = 25
# Percent-encoded length. Two names plus the longest screen prefix stay within
# Discord's 100-character custom id limit.
MAX_NAME_LENGTH = 36
UNASSIGNED_VALUE = "__unassigned__"

# Embed colours
PLAYER_COLOR = 0x3B82F6
TEAM_COLOR = 0x22C55E
ERROR_COLOR = 0xEF4444
MUTED_COLOR = 0x94A3B8
