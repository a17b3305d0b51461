"""
MongoDB configuration for the host storage layer.

Settings come from environment variables, optionally loaded from a ``.env``
file:

    MONGODB_URI                full connection string, overrides the parts below
    MONGODB_HOST               default localhost
    MONGODB_PORT               default 27017
    MONGODB_DATABASE           default subnet_discovery
    MONGODB_USERNAME / MONGODB_PASSWORD / MONGODB_AUTH_SOURCE
    MONGODB_MAX_POOL_SIZE      default 100
    MONGODB_CONNECT_TIMEOUT_MS default 10000
    MONGODB_SERVER_SELECTION_TIMEOUT_MS default 5000

Usage:
    config = MongoDBConfig()
    repository = MongoHostRepository(config.get_connection_string(), config.database)
"""

import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv

from .exceptions import ConfigurationError, sanitize_connection_string
from .logging_config import get_logger


class MongoDBConfig:
    """
    Resolves MongoDB connection settings from the environment.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None, load_env_file: bool = True):
        """
        Args:
            environ: Mapping to read settings from; defaults to ``os.environ``
            load_env_file: Load a ``.env`` file into the environment first
        """
        self.logger = get_logger(__name__)
        if environ is None:
            if load_env_file:
                load_dotenv()
            environ = os.environ
        self._config = self._load_config(environ)

    def _load_config(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        return {
            'uri': environ.get('MONGODB_URI'),
            'host': environ.get('MONGODB_HOST', 'localhost'),
            'port': self._int_setting(environ, 'MONGODB_PORT', 27017),
            'database': environ.get('MONGODB_DATABASE', 'subnet_discovery'),
            'username': environ.get('MONGODB_USERNAME'),
            'password': environ.get('MONGODB_PASSWORD'),
            'auth_source': environ.get('MONGODB_AUTH_SOURCE', 'admin'),
            'max_pool_size': self._int_setting(environ, 'MONGODB_MAX_POOL_SIZE', 100),
            'connect_timeout_ms': self._int_setting(environ, 'MONGODB_CONNECT_TIMEOUT_MS', 10000),
            'server_selection_timeout_ms': self._int_setting(environ, 'MONGODB_SERVER_SELECTION_TIMEOUT_MS', 5000),
        }

    @staticmethod
    def _int_setting(environ: Mapping[str, str], key: str, default: int) -> int:
        raw = environ.get(key)
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ConfigurationError(
                f"{key} must be an integer",
                config_key=key, config_value=raw, expected_type="int"
            ) from None
        if value <= 0:
            raise ConfigurationError(
                f"{key} must be positive",
                config_key=key, config_value=raw, expected_type="positive int"
            )
        return value

    @property
    def database(self) -> str:
        return self._config['database']

    @property
    def client_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``pymongo.MongoClient``."""
        return {
            'maxPoolSize': self._config['max_pool_size'],
            'connectTimeoutMS': self._config['connect_timeout_ms'],
            'serverSelectionTimeoutMS': self._config['server_selection_timeout_ms'],
        }

    def get_connection_string(self) -> str:
        """
        Build the MongoDB URI.

        Returns:
            ``MONGODB_URI`` when set, otherwise a URI assembled from host, port and credentials
        """
        if self._config['uri']:
            return self._config['uri']

        auth_part = ""
        query = ""
        if self._config['username'] and self._config['password']:
            username = quote_plus(self._config['username'])
            password = quote_plus(self._config['password'])
            auth_part = f"{username}:{password}@"
            query = f"?authSource={self._config['auth_source']}"

        return f"mongodb://{auth_part}{self._config['host']}:{self._config['port']}/{query}"

    @property
    def config(self) -> Dict[str, Any]:
        """Current settings with credentials masked."""
        safe_config = self._config.copy()
        if safe_config.get('password'):
            safe_config['password'] = '***'
        if safe_config.get('uri'):
            safe_config['uri'] = sanitize_connection_string(safe_config['uri'])
        return safe_config
