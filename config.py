# ============================================================
# DBTerm - Terminal Database Client
# config.py - Central Configuration Management
# ============================================================

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load .env file
BASE_DIR = Path(__file__).parent
load_dotenv(BASE_DIR / ".env")

CONFIG_DIR = Path.home() / ".config" / "dbterm"


class AppConfig(BaseSettings):
    """Application-level configuration."""

    model_config = SettingsConfigDict(env_prefix="DBTERM_", extra="ignore")

    name: str = Field(default="DBTerm")
    version: str = Field(default="1.0.0")
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=CONFIG_DIR / "logs" / "dbterm.log")
    profiles_file: Path = Field(default=CONFIG_DIR / "connections.json")
    demo_db_path: Path = Field(default=Path("demo.db"))

    # Seconds between polls of the background job queue
    poll_interval: float = Field(default=0.1)
    connect_timeout: int = Field(default=30)


class EditorConfig(BaseSettings):
    """Query editor and results grid configuration."""

    model_config = SettingsConfigDict(env_prefix="DBTERM_", extra="ignore")

    max_result_rows: int = Field(default=1000)
    max_column_width: int = Field(default=30)
    tab_width: int = Field(default=4)
    history_size: int = Field(default=50)


# ── Singleton Config Instances ────────────────────────────────
app_config = AppConfig()
editor_config = EditorConfig()
