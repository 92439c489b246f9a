"""Load and save AppSettings through a key-value store."""

import logging
from typing import Any

from pydantic import ValidationError

from ..store import KeyValueStore
from .models import AppSettings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"


async def load_settings(store: KeyValueStore) -> AppSettings:
    """Read settings from the store, merged over defaults."""
    return AppSettings.from_stored(await store.get(SETTINGS_KEY, {}))


async def save_settings(store: KeyValueStore, settings: AppSettings) -> None:
    """Write the full settings object to the store."""
    await store.set(SETTINGS_KEY, settings.model_dump(mode="json"))


async def update_settings(store: KeyValueStore, **changes: Any) -> AppSettings:
    """Apply changes to the stored settings and persist them.

    Raises:
        KeyError: If a change names an unknown setting
        ValueError: If a value is invalid for its setting
    """
    settings = await load_settings(store)
    for name, value in changes.items():
        if name not in AppSettings.model_fields:
            raise KeyError(f"Unknown setting: {name}")
        try:
            setattr(settings, name, value)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {name}: {value!r}") from e
    await save_settings(store, settings)
    logger.debug("Updated settings: %s", ", ".join(changes))
    return settings
