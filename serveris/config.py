#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Configuration Module for Serveris
---------------------------------
Handles loading the server configuration from various sources:
- Default configuration
- Configuration file (JSON)
- Keyword arguments (usually coming from the command line)

Every known key has its own parser; values that fail to parse are logged
and the previous value is kept. The configuration is read once at startup
and never modified afterwards.
"""

import os
import json
import logging
import ipaddress

DEFAULT_PORT = 8000


def parse_ipv4(value):
    """Parse an IPv4 address, returning its canonical string form."""
    return str(ipaddress.IPv4Address(str(value).strip()))


def parse_port(value):
    port = int(value)
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def parse_listener(value):
    """
    Parse an `ip[:port]` listener string.

    Returns:
        tuple: (host, port) where port is None when absent or not a
        positive number
    """
    host, sep, port_str = str(value).partition(':')
    port = None
    if sep:
        try:
            port = int(port_str)
        except ValueError:
            port = None
        if port is not None and not 0 < port <= 65535:
            port = None
    return parse_ipv4(host), port


def parse_positive_int(value):
    number = int(value)
    if number <= 0:
        raise ValueError(f"expected a positive integer, got {number}")
    return number


def parse_non_negative_int(value):
    number = int(value)
    if number < 0:
        raise ValueError(f"expected a non-negative integer, got {number}")
    return number


def parse_positive_float(value):
    number = float(value)
    if number <= 0:
        raise ValueError(f"expected a positive number, got {number}")
    return number


def parse_bool(value):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ('1', 'true', 'yes', 'on'):
        return True
    if text in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"expected a boolean, got {value!r}")


def parse_directory(value):
    """Resolve a directory against the current working directory."""
    if not value:
        raise ValueError("empty directory")
    return os.path.abspath(os.path.join(os.getcwd(), str(value)))


def parse_page_name(value):
    name = str(value)
    if not name:
        raise ValueError("empty page name")
    return name


def parse_log_level(value):
    level = str(value).upper()
    if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        raise ValueError(f"unknown log level {value!r}")
    return level


def parse_optional_path(value):
    return str(value) if value else None


class ServerConfig:
    """
    Server configuration.

    Loads configuration settings from various sources, with the following
    precedence (highest to lowest):
    1. Keyword arguments
    2. Configuration file
    3. Default values

    A `listener` value of the form `ip[:port]` sets the host and, when it
    carries one, the port. An explicit `port` always wins over the port of
    a listener.
    """

    # Default configuration settings
    DEFAULT_CONFIG = {
        "host": "127.0.0.1",
        "port": None,  # None means the listener port or DEFAULT_PORT
        "connection_queue": 10,
        "connection_limit": 10,
        "transmission_timeout": 1000,  # milliseconds, 0 disables
        "document_root": None,  # None means the current directory
        "default_page": "index.html",
        "redirect_to_index": False,
        "receive_buffer_size": 65536,
        "poll_interval": 0.5,
        "log_level": "INFO",
        "log_file": None,
        "colored_logging": True
    }

    PARSERS = {
        "host": parse_ipv4,
        "listener": parse_listener,
        "port": parse_port,
        "connection_queue": parse_positive_int,
        "connection_limit": parse_positive_int,
        "transmission_timeout": parse_non_negative_int,
        "document_root": parse_directory,
        "default_page": parse_page_name,
        "redirect_to_index": parse_bool,
        "receive_buffer_size": parse_positive_int,
        "poll_interval": parse_positive_float,
        "log_level": parse_log_level,
        "log_file": parse_optional_path,
        "colored_logging": parse_bool
    }

    def __init__(self, config_file=None, **kwargs):
        """
        Initialize the configuration with values from file and kwargs.

        Args:
            config_file: Path to a JSON configuration file
            **kwargs: Configuration values that override file values
        """
        self._config = self.DEFAULT_CONFIG.copy()
        self._config["document_root"] = os.getcwd()
        self._listener_port = None
        self.logger = logging.getLogger(__name__)

        if config_file:
            self.load_from_file(config_file)

        self._apply(kwargs, "arguments")

    def load_from_file(self, config_path):
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file

        Returns:
            bool: True if loaded successfully, False otherwise
        """
        if not os.path.exists(config_path):
            self.logger.warning(f"Configuration file {config_path} not found. Using defaults.")
            return False

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Error loading configuration: {e}")
            return False

        if not isinstance(file_config, dict):
            self.logger.error(f"Configuration file {config_path} must contain a JSON object")
            return False

        self._apply(file_config, config_path)
        self.logger.info(f"Loaded configuration from {config_path}")
        return True

    def _apply(self, values, source):
        for key, value in values.items():
            parser = self.PARSERS.get(key)
            if parser is None:
                self.logger.warning(f"Ignoring unknown configuration key {key!r} from {source}")
                continue
            if value is None and key not in ("port", "log_file"):
                continue

            try:
                parsed = parser(value) if value is not None else None
            except (TypeError, ValueError) as e:
                self.logger.error(f"Failed to init {key} from {source}: {e}")
                continue

            if key == "listener":
                self._config["host"], listener_port = parsed
                if listener_port is not None:
                    self._listener_port = listener_port
            else:
                self._config[key] = parsed

    def get(self, key, default=None):
        """
        Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if key is not found

        Returns:
            Value for the key or default if not found
        """
        if key == "port":
            return self.port
        return self._config.get(key, default)

    def get_all(self):
        """
        Get all configuration values.

        Returns:
            dict: All configuration values
        """
        values = self._config.copy()
        values["port"] = self.port
        return values

    # Property accessors for configuration values
    @property
    def host(self):
        return self._config['host']

    @property
    def port(self):
        if self._config['port'] is not None:
            return self._config['port']
        if self._listener_port is not None:
            return self._listener_port
        return DEFAULT_PORT

    @property
    def listen_address(self):
        return self.host, self.port

    @property
    def connection_queue(self):
        return self._config['connection_queue']

    @property
    def connection_limit(self):
        return self._config['connection_limit']

    @property
    def transmission_timeout(self):
        return self._config['transmission_timeout']

    @property
    def io_timeout(self):
        """Per-connection socket timeout in seconds, None when disabled."""
        timeout = self.transmission_timeout
        return timeout / 1000.0 if timeout else None

    @property
    def document_root(self):
        return self._config['document_root']

    @property
    def default_page(self):
        return self._config['default_page']

    @property
    def redirect_to_index(self):
        return self._config['redirect_to_index']

    @property
    def receive_buffer_size(self):
        return self._config['receive_buffer_size']

    @property
    def poll_interval(self):
        return self._config['poll_interval']

    @property
    def log_level(self):
        return self._config['log_level']

    @property
    def log_file(self):
        return self._config['log_file']

    @property
    def colored_logging(self):
        return self._config['colored_logging']
