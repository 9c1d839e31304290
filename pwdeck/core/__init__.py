"""
Core module - Contains configuration, logging, errors and the vault engine.
"""

from pwdeck.core.config import SecureConfig
from pwdeck.core.logging import configure_logging, get_secure_logger, SecureLogFilter

__all__ = ["SecureConfig", "configure_logging", "get_secure_logger", "SecureLogFilter"]
