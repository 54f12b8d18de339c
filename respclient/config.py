"""
respclient Configuration Module

Provides configuration management for the RESP client: dial target,
per-operation deadlines and decoder limits.
"""

from respclient.core.constants import (
    DEFAULT_URL, CONNECT_TIMEOUT, READ_TIMEOUT, WRITE_TIMEOUT, BUFFER_SIZE,
    MAX_BULK_SIZE, MAX_ARRAY_SIZE, MAX_ARRAY_DEPTH
)


# Default configuration values
DEFAULT_CONFIG = {
    # Network settings
    'url': DEFAULT_URL,
    'connect_timeout': CONNECT_TIMEOUT,  # Seconds, dial only
    'read_timeout': READ_TIMEOUT,        # Seconds, each read operation
    'write_timeout': WRITE_TIMEOUT,      # Seconds, each write/flush operation
    'buffer_size': BUFFER_SIZE,          # Socket receive chunk size

    # Decoder limits
    'max_bulk_size': MAX_BULK_SIZE,
    'max_array_size': MAX_ARRAY_SIZE,
    'max_depth': MAX_ARRAY_DEPTH,
}


class Config:
    """
    Configuration manager for respclient.

    Provides get/set access to configuration values. Only keys present in
    DEFAULT_CONFIG are accepted.
    """

    __slots__ = ('_config',)

    def __init__(self, initial_config=None):
        """
        Initialize configuration with defaults.

        Args:
            initial_config: dict - Optional initial configuration to merge with defaults
        """
        self._config = dict(DEFAULT_CONFIG)
        if initial_config:
            for key, value in initial_config.items():
                if key in DEFAULT_CONFIG:
                    self._config[key] = value

    def get(self, key, default=None):
        """
        Get configuration value.

        Args:
            key: str - Configuration key
            default: Any - Default value if key not found

        Returns:
            Configuration value or default
        """
        return self._config.get(key, default)

    def set(self, key, value):
        """
        Set configuration value.

        Args:
            key: str - Configuration key
            value: Any - Value to set

        Returns:
            bool: True if key exists and was set, False if unknown key
        """
        if key in DEFAULT_CONFIG:
            self._config[key] = value
            return True
        return False

    def get_all(self):
        """
        Get all configuration values.

        Returns:
            dict: Copy of all configuration values
        """
        return dict(self._config)

    def __getitem__(self, key):
        return self._config[key]

    def __repr__(self):
        return f'Config({self._config!r})'


# Global configuration instance
_global_config = None


def get_config():
    """
    Get global configuration instance.

    Returns:
        Config: Global configuration instance
    """
    global _global_config
    if _global_config is None:
        _global_config = Config()
    return _global_config


def init_config(config_dict=None):
    """
    Initialize global configuration.

    Args:
        config_dict: dict - Optional initial configuration

    Returns:
        Config: Initialized configuration instance
    """
    global _global_config
    _global_config = Config(config_dict)
    return _global_config


def resolve(config=None):
    """Return config if given, else the global configuration."""
    return config if config is not None else get_config()
