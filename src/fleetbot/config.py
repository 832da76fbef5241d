"""Runtime configuration for fleetbot."""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="FLEETBOT_", env_file=".env", extra="ignore")

    log_level: str = "INFO"

    discord_token: SecretStr = SecretStr("")
    discord_application_id: int | None = None
    discord_guild_id: str | None = Field(
        default=None,
        description="Install commands into this guild only. Leave unset to serve every guild the bot joins.",
    )

    debounce_seconds: float = 10.0
    poll_interval_seconds: float = 10.0

    minecraft_enabled: bool = False
    minecraft_rcon_address: str = Field(
        default="127.0.0.1:25575",
        description="host:port of the Minecraft RCON listener.",
    )
    minecraft_rcon_password: SecretStr = SecretStr("")
    minecraft_rcon_timeout_seconds: float = 1.0
    minecraft_rcon_reconnect_backoff_seconds: float = 0.25
    minecraft_rcon_max_reconnects: int | None = Field(
        default=None,
        description="Give up on the RCON endpoint after this many reconnects. Unset means unbounded.",
    )
    minecraft_approver_role: str = ""
    minecraft_console_channel_id: str | None = None
    minecraft_statefulset_name: str | None = None
    minecraft_statefulset_namespace: str | None = None
    minecraft_wakeup_replicas: int = 1
    minecraft_restart_mode: Literal["rcon", "rollout"] = Field(
        default="rcon",
        description="\"rollout\" restarts the stateful set pods instead of sending the restart command.",
    )

    valheim_enabled: bool = False
    valheim_query_address: str = "127.0.0.1:2457"
    valheim_query_timeout_seconds: float = 1.0
    valheim_approver_role: str = ""
    valheim_namespace: str | None = None
    valheim_pod_label_key: str | None = None
    valheim_pod_label: str | None = None

    kubernetes_in_cluster: bool = True
    kubernetes_field_manager: str = "fleetbot"


settings = Settings()
