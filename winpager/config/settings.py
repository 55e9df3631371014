"""
Winpager Settings Management
Loads and validates settings from settings.yml using Pydantic
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("WINPAGER.Settings")


class PagingSettings(BaseModel):
    """Window sizing and re-anchoring settings"""
    min_page_size: int = Field(
        default=100,
        ge=2,
        le=10000,
        description="Smallest number of rows requested per page (even, 2-10000)"
    )
    overscan: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Rows rendered beyond each edge of the viewport"
    )
    loading_skeleton_rows: int = Field(
        default=1,
        ge=0,
        le=10,
        description="Placeholder rows shown past an unreached boundary"
    )
    edge_threshold_divisor: int = Field(
        default=10,
        ge=2,
        le=100,
        description="Re-anchor when within page_size / divisor rows of the window edge"
    )
    recenter_factor: int = Field(
        default=2,
        ge=1,
        le=10,
        description="How many edge thresholds past the viewport to re-center the anchor"
    )
    snapshot_debounce_ms: int = Field(
        default=100,
        ge=0,
        le=10000,
        description="Delay before a changed session snapshot is emitted"
    )
    max_reconcile_passes: int = Field(
        default=32,
        ge=4,
        le=1000,
        description="Upper bound on state transitions handled per event"
    )
    permalink_fallback_to_top: bool = Field(
        default=False,
        description="Show the top of the list when a permalink is not found, "
        "instead of the empty not-found state"
    )

    @field_validator('min_page_size')
    @classmethod
    def validate_min_page_size(cls, v: int) -> int:
        """Page size is halved for permalink loading, so it must be even"""
        if v % 2 != 0:
            raise ValueError("min_page_size must be even")
        return v


class DisplaySettings(BaseModel):
    """Display-related settings"""
    estimate_granularity: int = Field(
        default=50,
        ge=1,
        le=10000,
        description="Rounding step for the displayed row count estimate"
    )


class ServerSettings(BaseModel):
    """Page query server settings"""
    host: str = Field(default="localhost")
    port: int = Field(default=8765, ge=0, le=65535)
    max_message_size: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Largest websocket frame accepted, in bytes"
    )
    seed_items: int = Field(
        default=5000,
        ge=0,
        le=1_000_000,
        description="Items generated when the database starts out empty"
    )


class Settings(BaseModel):
    """Main settings model"""
    paging: PagingSettings = Field(default_factory=PagingSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


class SettingsManager:
    """Manages loading and accessing settings"""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize settings manager

        Args:
            config_path: Path to settings.yml file. Defaults to ./settings.yml
        """
        if config_path is None:
            config_path = Path("settings.yml")

        self.config_path = Path(config_path)
        self.settings = self._load_settings()

    def _load_settings(self) -> Settings:
        """Load and validate settings from YAML file"""
        try:
            if not self.config_path.exists():
                logger.info("Settings file not found at %s, using defaults", self.config_path)
                return Settings()

            with open(self.config_path, 'r') as f:
                config_data = yaml.safe_load(f)

            if config_data is None:
                logger.info("Settings file is empty, using defaults")
                return Settings()

            settings = Settings(**config_data)
            logger.info("Loaded settings from %s", self.config_path)
            logger.debug("  - Min page size: %s", settings.paging.min_page_size)
            return settings

        except yaml.YAMLError as e:
            logger.error("Error parsing settings YAML: %s", e)
            return Settings()
        except (ValueError, TypeError) as e:
            logger.error("Invalid settings in %s: %s", self.config_path, e)
            return Settings()

    def reload(self):
        """Reload settings from file"""
        self.settings = self._load_settings()

    @property
    def min_page_size(self) -> int:
        return self.settings.paging.min_page_size

    @property
    def snapshot_debounce_ms(self) -> int:
        return self.settings.paging.snapshot_debounce_ms

    @property
    def server_port(self) -> int:
        return self.settings.server.port

    def update_settings(self, **kwargs):
        """Update settings and save to file"""
        data = self.settings.model_dump()
        for key, value in kwargs.items():
            # Nested keys like 'paging.min_page_size'
            parts = key.split('.')
            target = data
            for part in parts[:-1]:
                target = target[part]
            target[parts[-1]] = value

        # Re-validate so a bad value never reaches the running engine
        self.settings = Settings(**data)
        self._save_settings()

    def _save_settings(self):
        """Save current settings to YAML file"""
        config_data = self.settings.model_dump()
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            yaml.dump(config_data, f, default_flow_style=False)


# Global settings instance
_settings_manager: Optional[SettingsManager] = None


def get_settings(config_path: Optional[Path] = None) -> SettingsManager:
    """Get the global settings manager instance"""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager(config_path)
    return _settings_manager
