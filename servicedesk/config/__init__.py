"""
Configuration package for the service desk.

Environment settings and logging setup.
"""

from servicedesk.config.settings import Settings, get_settings, settings
from servicedesk.config.logging import setup_logging

__all__ = ['Settings', 'get_settings', 'settings', 'setup_logging']
