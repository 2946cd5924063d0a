"""
Configuration and environment setup.

Settings are read from the environment and an optional .env file.
"""

from .settings import Settings, get_settings, configure_logging

__all__ = ['Settings', 'get_settings', 'configure_logging']
