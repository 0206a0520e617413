"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml


DEFAULT_CONFIG: Dict[str, Any] = {
    'export': {
        'output_directory': 'out',
        'limit': None,
        'overwrite': False,
        'max_workers': 4,
        'post_types': ['post'],
        'redirect_hosts': ['https://swizec.com', 'https://www.swizec.com'],
        'default_hero': '../../../defaultHero.jpg',
        'progress_bars': True,
        'write_report': True,
    },
    'images': {
        'verify_ssl': True,
        'timeout': 30,
        'user_agent': (
            'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
            '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
        ),
    },
    'logging': {
        'level': 'INFO',
        'file_name': 'conversion-log.txt',
    },
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        The file is optional: without a path, the built-in defaults are
        returned. Values from the file are merged over the defaults.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If an explicit config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        config = copy.deepcopy(DEFAULT_CONFIG)
        if not config_path:
            return config

        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        # Substitute environment variables recursively
        config_data = cls._substitute_env_vars_recursive(config_data)

        return cls._deep_merge(config, config_data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'export.output_directory')
        output_dir = get_nested(config, 'export.output_directory')
        if output_dir and os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        max_workers = get_nested(config, 'export.max_workers', 4)
        if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
            raise ValueError("export.max_workers must be a positive integer")

        post_types = get_nested(config, 'export.post_types', ['post'])
        if not isinstance(post_types, list) or not post_types:
            raise ValueError("export.post_types must be a non-empty list")

        redirect_hosts = get_nested(config, 'export.redirect_hosts', [])
        if not isinstance(redirect_hosts, list):
            raise ValueError("export.redirect_hosts must be a list")
        for host in redirect_hosts:
            cls._validate_url(host, 'export.redirect_hosts')

        for flag in ('export.overwrite', 'export.progress_bars', 'export.write_report', 'images.verify_ssl'):
            if not isinstance(get_nested(config, flag, False), bool):
                raise ValueError(f"{flag} must be a boolean")

        # Validate timeout settings
        timeout = get_nested(config, 'images.timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("images.timeout must be a positive number")

        level = get_nested(config, 'logging.level', 'INFO')
        if str(level).upper() not in {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}:
            raise ValueError("logging.level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")

        cls._validate_required_field(config, 'logging.file_name')

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        # Ensure nested dictionaries exist
        for section in ('export', 'images', 'logging'):
            merged.setdefault(section, {})

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'overwrite', False):
            merged['export']['overwrite'] = True

        if getattr(args, 'workers', None):
            merged['export']['max_workers'] = args.workers

        if getattr(args, 'insecure', False):
            merged['images']['verify_ssl'] = False

        if getattr(args, 'verbose', 0):
            merged['logging']['level'] = 'DEBUG'

        return merged

    @classmethod
    def _deep_merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge override values into base."""
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                base[key] = cls._deep_merge(base[key], value)
            else:
                base[key] = value
        return base

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        # Check for unsubstituted environment variables
        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(str(url))
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "images.verify_ssl")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
