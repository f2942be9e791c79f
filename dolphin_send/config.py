import os
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

_CONFIG_PATH = os.getenv("DOLPHIN_CONFIG", "config.toml")
_ENV_PATH = os.getenv("DOLPHIN_ENV", ".env")


class DeliverySettings(BaseModel):
    host: str
    port: Annotated[int, Field(ge=1, le=65535)]
    timeout: float = 10.0

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


class WatcherSettings(BaseModel):
    log_path: Path
    death_keywords: List[str] = Field(default_factory=list)
    poll_interval_ms: Annotated[int, Field(gt=0)] = 1000
    force_polling: bool = False
    queue_size: Annotated[int, Field(ge=1)] = 1

    @field_validator("log_path")
    @classmethod
    def expand_log_path(cls, value: Path) -> Path:
        return value.expanduser()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOLPHIN_",
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
        extra="ignore",
    )

    debug: bool = False
    delivery: DeliverySettings
    watcher: WatcherSettings
    logs_dir: Optional[Path] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: CLI args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )
