"""
Application settings management.

Settings are loaded from environment variables with .env file support.
All configuration is validated using Pydantic.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from interviewer.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    protocols_dir: Path = Field(
        default=Path("data/protocols"),
        description="Root directory holding one asset directory per installed protocol",
    )

    # ==========================================================================
    # Logging
    # ==========================================================================

    log_sessions_to_keep: int = Field(
        default=5, ge=1, le=100, description="Number of log files to retain"
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")


# ============================================================================
# Store Configuration (from YAML)
# ============================================================================


class SessionDefaults(BaseModel):
    """Defaults applied when sessions are created."""

    id_head_length: int = Field(
        default=8, ge=1, le=32, description="Characters in the first id segment"
    )
    id_tail_length: int = Field(
        default=12, ge=0, le=32, description="Characters in the second id segment"
    )
    path_template: str = Field(
        default="/session/{session_id}",
        description="Storage path used when a session is added without one",
    )

    @field_validator("path_template")
    @classmethod
    def template_has_session_id(cls, v: str) -> str:
        """Require the {session_id} placeholder so paths stay unique."""
        if "{session_id}" not in v:
            raise ValueError("path_template must contain '{session_id}'")
        return v


class ExportConfig(BaseModel):
    """Session export options."""

    include_ego: bool = Field(
        default=True, description="Write ego attributes as graph-level data"
    )
    prettyprint: bool = Field(default=True, description="Indent exported documents")


class StoreConfig(BaseModel):
    """
    Complete store configuration loaded from store_config.yaml.
    """

    session: SessionDefaults = Field(default_factory=SessionDefaults)
    export: ExportConfig = Field(default_factory=ExportConfig)


def load_store_config(config_path: Optional[Path] = None) -> StoreConfig:
    """
    Load store configuration from YAML file.

    Args:
        config_path: Path to store_config.yaml. If None, uses default path.

    Returns:
        StoreConfig with validated settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    if config_path is None:
        # Default path: config/store_config.yaml relative to project root
        check_path = Path(__file__).resolve().parent.parent.parent / "config" / "store_config.yaml"
        if check_path.exists():
            config_path = check_path
        else:
            cwd_config = Path.cwd() / "config" / "store_config.yaml"
            if not cwd_config.exists():
                return StoreConfig()
            config_path = cwd_config

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return StoreConfig()

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {config_path}: {e}") from e

    if not config_data:
        return StoreConfig()

    try:
        return StoreConfig(**config_data)
    except (TypeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid store configuration in {config_path}: {e}") from e


# Global settings instance
settings = Settings()

# Global store config instance
store_config = load_store_config()
