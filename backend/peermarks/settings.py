"""Application settings loaded from environment variables."""

from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from peermarks.models import ComparisonLevel

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_LOCAL_DATA_DIR = BASE_DIR / "data"


class Settings(BaseSettings):
    """Runtime configuration for the PeerMarks backend."""

    model_config = SettingsConfigDict(env_prefix="PEERMARKS_", extra="ignore")

    app_name: str = "PeerMarks API"
    data_dir: str = Field(
        default=str(DEFAULT_LOCAL_DATA_DIR),
        validation_alias=AliasChoices("PEERMARKS_DATA_DIR", "DATA_DIR"),
    )
    sqlite_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PEERMARKS_SQLITE_PATH", "SQLITE_PATH"),
    )
    log_level: str = "INFO"

    # Evaluation tuning
    default_comparison: ComparisonLevel = ComparisonLevel.NORMAL
    variance_threshold: float = Field(default=0.01, ge=0)

    @model_validator(mode="after")
    def _set_sqlite_path(self) -> "Settings":
        if not self.sqlite_path:
            self.sqlite_path = str(Path(self.data_dir) / "peermarks.db")
        return self

    @property
    def sqlite_url(self) -> str:
        return f"sqlite:///{self.sqlite_path}"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)


settings = Settings()
