"""
Core module - Contains configuration, logging, and the vault engine components.
"""

from aliaser.core.config import AliaserConfig
from aliaser.core.logging import SecureLogFilter, configure_logging, get_secure_logger

__all__ = ["AliaserConfig", "SecureLogFilter", "configure_logging", "get_secure_logger"]
