"""
Utility modules for the comparables engine.
"""

from .formatting import format_currency, format_percent, format_value
from .config import Config, configure_logging

__all__ = ["format_currency", "format_percent", "format_value", "Config", "configure_logging"]
