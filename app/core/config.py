"""Member group processor configuration settings."""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

logger = structlog.stdlib.get_logger().bind(component="config")

DEFAULT_TRAIT_TOPICS = (
    "member.action.profile.trait.create,"
    "member.action.profile.trait.update,"
    "member.action.profile.trait.delete"
)


class StreamSettings(BaseSettings):
    """Message stream routing settings.

    Environment Variables:
        KAFKA_TOPICS: Comma separated list of profile trait topics
        IDENTITY_TOPIC: Topic carrying identity creation notifications
        COMMUNITIES_TRAIT_ID: Trait kind handled by the reconciler
    """

    KAFKA_TOPICS: str = DEFAULT_TRAIT_TOPICS
    IDENTITY_TOPIC: str = "identity.notification.create"
    COMMUNITIES_TRAIT_ID: str = "communities"

    @field_validator("KAFKA_TOPICS")
    @classmethod
    def _warn_without_trait_topics(cls, v: str) -> str:
        if not any(topic.strip() for topic in v.split(",")):
            logger.warning(
                "no_trait_topics_configured",
                msg="Trait messages will be ignored; only identity events are handled",
            )
        return v

    @property
    def trait_topics(self) -> List[str]:
        """Trait topics as a list, blanks removed."""
        topics = self.KAFKA_TOPICS.split(",")
        return [topic.strip() for topic in topics if topic.strip()]

    @property
    def topics(self) -> List[str]:
        """Every topic the processor subscribes to."""
        return self.trait_topics + [self.IDENTITY_TOPIC]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


class GroupApiSettings(BaseSettings):
    """Group directory API settings."""

    TC_API_BASE_URL: str = "https://api.topcoder.com"
    GROUP_API_TIMEOUT_SECONDS: int = Field(default=10, gt=0)
    MEMBERSHIP_TYPE: str = "user"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


class M2MSettings(BaseSettings):
    """Machine-to-machine token settings.

    Environment Variables:
        AUTH0_URL: Token endpoint
        AUTH0_AUDIENCE: Audience requested for the token
        AUTH0_CLIENT_ID / AUTH0_CLIENT_SECRET: Client credentials
        AUTH0_PROXY_SERVER_URL: Optional proxy in front of the token endpoint
        TOKEN_CACHE_TIME: Seconds a token is cached. When unset the token
            expiry claim is used instead.
    """

    AUTH0_URL: str = ""
    AUTH0_AUDIENCE: str = "https://www.topcoder.com"
    AUTH0_CLIENT_ID: str = ""
    AUTH0_CLIENT_SECRET: str = ""
    AUTH0_PROXY_SERVER_URL: Optional[str] = None
    TOKEN_CACHE_TIME: Optional[int] = None
    TOKEN_REQUEST_TIMEOUT_SECONDS: int = Field(default=10, gt=0)

    @field_validator("AUTH0_PROXY_SERVER_URL", "TOKEN_CACHE_TIME", mode="before")
    @classmethod
    def _empty_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Member group processor configuration settings."""

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    stream: StreamSettings
    group_api: GroupApiSettings
    m2m: M2MSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production."""
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        settings_map = {
            "stream": StreamSettings,
            "group_api": GroupApiSettings,
            "m2m": M2MSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create the settings instance
settings = Settings()
