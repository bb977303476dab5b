#!/usr/bin/env python3
"""
Settings loader for the Quire Markdown pipeline.
Supports configuration from quire.yml, quire.yaml, or quire.json files.
"""

import os
import json
import logging
import yaml
from typing import Dict, Any, Optional

from .pipeline import GFM_PLUGINS

logger = logging.getLogger('Quire')

SAMPLE_YAML = """# Quire Configuration File
# Configure the Markdown pipeline here

# Content
content: content

# Worker pool
workers: null  # defaults to the number of CPUs
prefetch: 4
executor: process  # process or thread
parallel_threshold: 12
stall_warning: 30

# Transforms
math: true
highlight: true
collect_headings: true
toc_max_depth: 6
gfm_plugins:
{plugins}

# Logging
log_dir: logs
log_level: INFO
"""


def _load_yaml(f):
    return yaml.safe_load(f)


def _load_json(f):
    return json.load(f)


class QuireSettings:
    """Load and manage Quire configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'content': 'content',
        'workers': None,
        'prefetch': 4,
        'executor': 'process',
        'parallel_threshold': 12,
        'stall_warning': 30,
        'math': True,
        'highlight': True,
        'collect_headings': True,
        'toc_max_depth': 6,
        'gfm_plugins': list(GFM_PLUGINS),
        'log_dir': 'logs',
        'log_level': 'INFO',
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['quire.yml', 'quire.yaml', 'quire.json']

    LOADERS = {
        '.yml': _load_yaml,
        '.yaml': _load_yaml,
        '.json': _load_json,
    }

    # Lists given as comma-separated strings on the command line
    LIST_SETTINGS = ('gfm_plugins',)

    def __init__(self, config_dir: str = None):
        """
        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = {key: list(value) if isinstance(value, list) else value
                         for key, value in self.DEFAULT_SETTINGS.items()}
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Overlay the first config file found on the defaults.

        A file that cannot be read or parsed is reported and ignored, so the
        build still runs on defaults.
        """
        config_file = self._find_config_file()
        if not config_file:
            return self.settings.copy()

        self.config_file_path = config_file
        try:
            loaded_settings = self._load_config_file(config_file)
        except (ValueError, IOError, OSError) as e:
            logger.warning(f"Failed to load config file {config_file}: {e}")
            return self.settings.copy()

        self.settings.update(loaded_settings)
        logger.info(f"Loaded configuration from: {os.path.relpath(config_file)}")
        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Parse one config file into a mapping.

        Raises:
            ValueError: unknown extension, invalid YAML/JSON, or a top level
                that is not a mapping
            IOError: the file cannot be read
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        loader = self.LOADERS.get(file_ext)
        if loader is None:
            raise ValueError(f"Unsupported config file format: {file_ext}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = loader(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid configuration file {config_path}: {e}") from e
        except (IOError, OSError) as e:
            raise IOError(f"Cannot read configuration file {config_path}: {e}") from e

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError("Top level of the configuration must be a mapping")
        return loaded

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Write a config file holding every default and return its path.

        Args:
            file_format: 'yml', 'yaml', or 'json'
        """
        if file_format in ('yml', 'yaml'):
            plugins = '\n'.join(f"  - {plugin}" for plugin in GFM_PLUGINS)
            content = SAMPLE_YAML.format(plugins=plugins)
        elif file_format == 'json':
            content = json.dumps(self.DEFAULT_SETTINGS, indent=2) + '\n'
        else:
            raise ValueError(f"Unsupported config file format: {file_format}")

        config_path = os.path.join(self.config_dir, f'quire.{file_format}')
        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}") from e

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.
        """
        merged = self.settings.copy()

        for key, value in args_dict.items():
            if value is None:
                continue
            if key in self.LIST_SETTINGS and isinstance(value, str):
                value = [item.strip() for item in value.split(',') if item.strip()]
            merged[key] = value

        return merged
