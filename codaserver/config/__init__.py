"""
Configuration management for the CodaServer client

Loads client settings from a YAML file and environment variables.

License: Mozilla Public License 2.0
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULTS: Dict[str, Any] = {
    'host': 'localhost',
    'port': 3407,
    'timeout': 30,
    'verify_ssl': True,
    'reconnect_on_expired_session': True,
}


def setup_logging(level: Optional[str] = None):
    """
    Configure logging for applications using the client.

    Args:
        level: Log level name. Defaults to CODASERVER_LOG_LEVEL, then INFO.
    """
    log_level = (level or os.getenv('CODASERVER_LOG_LEVEL', 'INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)]
    )


class Config:
    """Client configuration manager"""

    def __init__(self, config_dir: Optional[Path] = None, filename: str = "client.yaml"):
        """
        Initialize configuration.

        Args:
            config_dir: Path to configuration directory. If None, uses default location.
            filename: Name of the YAML file inside config_dir
        """
        if config_dir is None:
            config_dir = Path(__file__).parent

        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / filename
        self.settings: Dict[str, Any] = dict(DEFAULTS)

        self._load_client_config()

    def _load_client_config(self):
        """Load client configuration from YAML"""
        if not self.config_file.exists():
            logger.warning(f"Client configuration not found: {self.config_file}, using defaults")
            return

        try:
            with open(self.config_file, 'r') as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to load client configuration: {e}")
            raise ConfigurationError(f"Invalid configuration file {self.config_file}: {e}")

        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration file {self.config_file} must contain a mapping")

        unknown = set(config) - set(DEFAULTS)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(sorted(unknown))}")

        for key in DEFAULTS:
            if key in config and config[key] is not None:
                self.settings[key] = config[key]

        logger.debug(f"Loaded client configuration from {self.config_file}")

    def _number(self, env_name: str, key: str, cast: Callable[[Any], Any]) -> Any:
        """Read a numeric setting, preferring the environment over the config file"""
        env_value = os.getenv(env_name)
        if env_value:
            source, value = env_name, env_value
        else:
            source, value = f"'{key}' in {self.config_file}", self.settings[key]

        if isinstance(value, bool):
            raise ConfigurationError(f"{source} must be a {cast.__name__}, got '{value}'")
        try:
            return cast(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"{source} must be a {cast.__name__}, got '{value}'")

    def get_host(self) -> str:
        """Get server host from environment (default: config file)"""
        return os.getenv("CODASERVER_HOST") or str(self.settings['host'])

    def get_port(self) -> int:
        """Get server port from environment (default: config file)"""
        return self._number("CODASERVER_PORT", 'port', int)

    def get_request_timeout(self) -> float:
        """Get request timeout in seconds from environment (default: config file)"""
        return self._number("CODASERVER_TIMEOUT", 'timeout', float)

    def get_verify_ssl(self) -> bool:
        return bool(self.settings['verify_ssl'])

    def reconnect_on_expired_session(self) -> bool:
        return bool(self.settings['reconnect_on_expired_session'])

    def __repr__(self):
        return f"Config(host={self.get_host()}, port={self.get_port()})"
