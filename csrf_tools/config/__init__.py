"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: ConfigProvider, EnvConfigProvider and the config dataclasses
Hidden: Config sources, validation logic, environment parsing
"""

from .provider import APIConfig, ConfigProvider, CSRFConfig, EnvConfigProvider, SessionConfig

__all__ = ["APIConfig", "ConfigProvider", "CSRFConfig", "EnvConfigProvider", "SessionConfig"]
