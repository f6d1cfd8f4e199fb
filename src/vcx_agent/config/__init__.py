from .settings import Settings, get_settings, reload_settings_cache

__all__ = ["Settings", "get_settings", "reload_settings_cache"]
