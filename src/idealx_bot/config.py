from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import FrozenSet, List, Tuple


def _split_ids(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings(BaseSettings):
    DISCORD_BOT_TOKEN: str = Field(..., description="Discord bot token")
    DISCORD_PUBLIC_KEY: str = Field(..., description="Application public key (interaction signatures)")
    DISCORD_APPLICATION_ID: str = Field(..., description="Application ID, also the bot user ID")
    DISCORD_MENTION_ROLE_IDS: str = Field("", description="Comma-separated role IDs that count as a mention")
    DISCORD_API_BASE: str = "https://discord.com/api/v10"
    OPENAI_API_KEY: str = Field(..., description="OpenAI API Key")
    MODEL: str = "gpt-4o"
    ENABLE_WEB_SEARCH: bool = True
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000
    ENABLE_GATEWAY: bool = True

    # Forum auto-response scope
    TARGET_SERVER_IDS: str = Field("", description="Comma-separated guild IDs")
    TARGET_FORUM_CHANNEL_IDS: str = Field("", description="Comma-separated forum channel IDs")

    # Gateway supervision
    GATEWAY_SESSION_HOURS: float = 24
    GATEWAY_RETRY_DELAY_SECONDS: float = 5

    # Conversation windows
    DEFAULT_WINDOW: int = 5
    FORUM_WINDOW: int = 100
    REACTION_LOOKBACK: int = 10

    # URL enrichment
    MAX_LINKS_PER_MESSAGE: int = 3
    FETCH_TIMEOUT_SECONDS: float = 10.0
    MAX_CONTENT_CHARS: int = 2000

    # Model limits
    MAX_OUTPUT_TOKENS: int = 4096
    MAX_TOOL_STEPS: int = 6

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def mention_role_ids(self) -> List[str]:
        return _split_ids(self.DISCORD_MENTION_ROLE_IDS)

    @property
    def target_scope(self) -> FrozenSet[Tuple[str, str]]:
        """(server_id, forum_channel_id) pairs that get forum auto-responses."""
        return frozenset(
            (server_id, channel_id)
            for server_id in _split_ids(self.TARGET_SERVER_IDS)
            for channel_id in _split_ids(self.TARGET_FORUM_CHANNEL_IDS)
        )

    @property
    def webhook_url(self) -> str:
        return f"http://localhost:{self.PORT}/api/webhooks/discord"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
