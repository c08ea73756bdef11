"""Configuration management for teleterm.

Loads and validates YAML-based configuration with Pydantic models.
Environment variables (``TELETERM_*``) override file values.
"""

from teleterm.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
