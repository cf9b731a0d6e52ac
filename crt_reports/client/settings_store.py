"""
Site settings kept in client storage.
"""
import logging
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from crt_reports.client.session import SETTINGS_KEY
from crt_reports.client.storage import ClientStorage
from crt_reports.exceptions.base import ValidationError
from crt_reports.schemas.models import SiteSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    def __init__(self, storage: ClientStorage):
        self.storage = storage

    def load(self) -> SiteSettings:
        """Saved settings, or the defaults when none (or unreadable ones) are stored."""
        raw = self.storage.get(SETTINGS_KEY)
        if not raw:
            return SiteSettings()
        try:
            return SiteSettings.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(f"Stored settings are invalid, using defaults: {e}")
            return SiteSettings()

    def save(self, values: Dict[str, Any]) -> SiteSettings:
        """Merge ``values`` (camelCase or snake_case keys) over the current settings."""
        aliases = {name: info.alias or name for name, info in SiteSettings.model_fields.items()}
        merged = self.load().model_dump(by_alias=True)
        merged.update({aliases.get(key, key): value for key, value in values.items()})
        try:
            settings = SiteSettings.model_validate(merged)
        except PydanticValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise ValidationError(messages, details={"errors": e.errors()})

        self.storage.set(SETTINGS_KEY, settings.model_dump(by_alias=True))
        logger.info(f"Settings saved for {settings.company_name}")
        return settings
