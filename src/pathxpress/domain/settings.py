"""Service configuration domain service."""

import logging

from pathxpress.database.base import Database
from pathxpress.domain.config import (
    CONFIG_DESCRIPTIONS,
    CONFIG_KEYS,
    ServiceConfig,
    config_to_entries,
    load_service_config,
)
from pathxpress.domain.errors import ValidationError

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for reading and changing platform billing defaults."""

    def __init__(self, db: Database):
        """Initialize config service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_config(self) -> ServiceConfig:
        """Load the current typed configuration.

        Returns:
            ServiceConfig with stored values overriding the defaults

        Raises:
            ValidationError: If a stored value is malformed
        """
        return load_service_config(self.db.get_config_entries())

    def set_value(self, key: str, value: str) -> None:
        """Store a configuration value after validating it.

        Args:
            key: Configuration key, e.g. COD_FEE_PERCENTAGE (case-insensitive)
            value: Raw value

        Raises:
            ValidationError: If the key is unknown or the value is malformed
        """
        key = key.strip().upper()
        if key not in CONFIG_KEYS:
            known = ", ".join(sorted(CONFIG_KEYS))
            raise ValidationError(f"Unknown config key '{key}'. Known keys: {known}")

        # Validate against the merged configuration before storing
        entries = self.db.get_config_entries()
        entries[key] = value
        load_service_config(entries)

        self.db.set_config_entry(key, value.strip(), CONFIG_DESCRIPTIONS.get(key))
        logger.info("Config %s set to %r", key, value)

    def list_values(self) -> dict[str, str]:
        """Return every known key with its effective value."""
        return config_to_entries(self.get_config())
