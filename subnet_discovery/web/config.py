"""
Configuration for the Subnet Discovery web API
"""
import os
import logging
from typing import List
from dotenv import load_dotenv

from ..utils.error_handler import ConfigurationError

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_STORE_BACKENDS = ['mongodb', 'memory']


def _int_from_env(name, default):
    """Read an integer setting, keeping the raw text when it does not parse so validation can report it."""
    raw = os.environ.get(name) or str(default)
    try:
        return int(raw)
    except ValueError:
        return raw


class Config:
    """Web API configuration read from the environment."""

    HOST = os.environ.get('FLASK_HOST') or '127.0.0.1'
    PORT = _int_from_env('FLASK_PORT', 8080)
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() in ['true', '1', 'yes']

    # Where refreshed hosts are stored: 'mongodb' or 'memory'
    HOST_STORE = os.environ.get('HOST_STORE', 'mongodb').lower()

    # Directory holding sweep_config.yml; empty means the packaged default
    SWEEP_CONFIG_DIR = os.environ.get('SWEEP_CONFIG_DIR', '')

    # Abort a refresh on the first host that cannot be persisted
    FAIL_FAST = os.environ.get('FAIL_FAST', 'False').lower() in ['true', '1', 'yes']

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    LOG_FORMAT = os.environ.get('LOG_FORMAT', 'console').lower()
    LOG_FILE = os.environ.get('LOG_FILE', '')

    @classmethod
    def validate_configuration(cls) -> List[str]:
        """
        Validate configuration settings and return list of warnings/errors.

        Returns:
            List of validation messages (warnings and errors)
        """
        messages = []

        if not isinstance(cls.PORT, int) or cls.PORT < 1 or cls.PORT > 65535:
            messages.append(f"ERROR: Invalid PORT value: {cls.PORT!r}")

        if cls.LOG_LEVEL not in VALID_LOG_LEVELS:
            messages.append(f"ERROR: Invalid LOG_LEVEL: {cls.LOG_LEVEL}. Must be one of: {', '.join(VALID_LOG_LEVELS)}")

        if cls.HOST_STORE not in VALID_STORE_BACKENDS:
            messages.append(f"ERROR: Invalid HOST_STORE: {cls.HOST_STORE}. Must be one of: {', '.join(VALID_STORE_BACKENDS)}")

        if cls.DEBUG and cls.HOST not in ('127.0.0.1', 'localhost'):
            messages.append(f"WARNING: Debug mode enabled while listening on {cls.HOST}")

        return messages

    @classmethod
    def init_app(cls, app) -> None:
        """Validate the configuration, raising on errors and logging warnings."""
        for message in cls.validate_configuration():
            if message.startswith("ERROR"):
                logger.error(message)
                raise ConfigurationError(message)
            logger.warning(message)
