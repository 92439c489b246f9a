from .models import AppSettings
from .repository import SETTINGS_KEY, load_settings, save_settings, update_settings

__all__ = [
    "SETTINGS_KEY",
    "AppSettings",
    "load_settings",
    "save_settings",
    "update_settings",
]
