"""
Engine Configuration Integration
================================

Loads the engine YAML (field mappings and business hours) and keeps it
current:
- pydantic validation of every entry
- YAML config file watcher for hot reload
"""

import threading
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from src.core import ConfigurationException
from src.entitlements.application import IFieldMappingProvider
from src.entitlements.domain import FieldMapping, FieldMappingEntry
from src.shared.domain import BusinessHoursCalendar
from src.shared.infrastructure.logging import get_logger
from src.sla.application import IBusinessHoursProvider

logger = get_logger(__name__)


class EngineConfig(BaseModel):
    """
    Engine configuration loaded from YAML.

    This is a value object - immutable once loaded, replaced as a whole on reload.
    """
    field_mappings: List[FieldMappingEntry] = Field(
        ...,
        min_length=1,
        description="Record/entitlement field comparisons with priority bands"
    )
    business_hours: BusinessHoursCalendar = Field(
        default_factory=BusinessHoursCalendar,
        description="Organization default business hours"
    )


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for engine config file changes."""

    def __init__(self, config_manager: "EngineConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info(f"Config file changed: {event.src_path}")
            self.config_manager.reload()


class EngineConfigManager(IFieldMappingProvider, IBusinessHoursProvider):
    """
    Thread-safe engine configuration manager with hot-reload support.

    Every read returns the configuration as a whole, so a batch that reads
    once never sees a half-applied reload.
    """

    def __init__(self):
        self._config: Optional[EngineConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> EngineConfig:
        """
        Initial configuration load.

        Raises:
            ConfigurationException: if the file is missing or invalid
        """
        self._path = Path(path)
        config = self._load_from_file(self._path)
        with self._lock:
            self._config = config
        return config

    @staticmethod
    def _load_from_file(path: Path) -> EngineConfig:
        """Load and validate the YAML config file."""
        if not path.exists():
            raise ConfigurationException(
                f"Engine config file not found: {path}",
                {"path": str(path)}
            )

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(
                f"Engine config is not valid YAML: {e}",
                {"path": str(path)}
            ) from e

        return EngineConfigManager.parse(data, source=str(path))

    @staticmethod
    def parse(data: dict, source: str = "<memory>") -> EngineConfig:
        """Validate raw configuration data."""
        if not isinstance(data, dict):
            raise ConfigurationException(
                "Engine config must be a mapping",
                {"source": source}
            )
        try:
            return EngineConfig(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Engine config is invalid: {e.error_count()} error(s)",
                {
                    "source": source,
                    "errors": e.errors(
                        include_url=False, include_context=False, include_input=False
                    ),
                }
            ) from e

    def reload(self) -> bool:
        """Reload configuration from file, keeping the old one on failure."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except ConfigurationException as e:
            logger.error(
                "Failed to reload engine config, keeping previous configuration",
                extra={"error": e.message, "path": str(self._path)}
            )
            return False

        with self._lock:
            self._config = new_config
        logger.info("Engine configuration reloaded successfully")
        return True

    def start_watching(self) -> None:
        """Start watching the configuration file for changes."""
        if self._path is None:
            raise ConfigurationException("Config not loaded. Call load() first.")

        try:
            self._observer = Observer()
            handler = ConfigFileHandler(self, self._path)
            self._observer.schedule(
                handler,
                str(self._path.resolve().parent),
                recursive=False
            )
            self._observer.start()
            logger.info(f"Started watching config file: {self._path}")
        except OSError as e:
            # File watching not supported (e.g., in Docker containers)
            logger.warning(
                f"File watching not available, using static config: {e}"
            )
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching configuration file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def config(self) -> EngineConfig:
        """Get current configuration."""
        with self._lock:
            config = self._config
        if config is None:
            raise ConfigurationException("Engine configuration not loaded")
        return config

    @property
    def is_loaded(self) -> bool:
        return self._config is not None

    def get_field_mappings(self) -> List[FieldMapping]:
        return [entry.to_mapping() for entry in self.config.field_mappings]

    def get_business_hours(self) -> BusinessHoursCalendar:
        return self.config.business_hours
