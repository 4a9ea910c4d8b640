"""
IRC Statistics - Configuration
===============================
Settings for the stats store: snapshot location, autosave cadence and
report sizes.
"""

import os
import json
from pathlib import Path
from core.log import get_logger

logger = get_logger("stats_config")


def _as_bool(value):
    return value.lower() in ('true', '1', 'yes', 'on')


class StatsConfig:
    """Stats configuration: DEFAULTS <- JSON file <- STATS_* environment"""

    DEFAULTS = {
        'enabled': True,
        'snapshot_file': 'data/stats.db',
        'autosave_enabled': True,
        'autosave_interval': 300,  # seconds
        'top_n': 10,
    }

    ENV_MAPPINGS = {
        'STATS_ENABLED': ('enabled', _as_bool),
        'STATS_SNAPSHOT_FILE': ('snapshot_file', str),
        'STATS_AUTOSAVE_ENABLED': ('autosave_enabled', _as_bool),
        'STATS_AUTOSAVE_INTERVAL': ('autosave_interval', float),
        'STATS_TOP_N': ('top_n', int),
    }

    def __init__(self, config_file='stats_config.json'):
        self.config_file = config_file
        self.config = self.DEFAULTS.copy()
        self.load_config()

    def load_config(self):
        """Load from the JSON file, then apply environment overrides"""

        config_path = Path(self.config_file)
        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)

                self.config.update({k: v for k, v in file_config.items() if k in self.DEFAULTS})
                logger.info(f"Loaded config from {self.config_file}")

            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config from {self.config_file}: {e}")

        for env_var, (config_key, converter) in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    self.config[config_key] = converter(value)
                    logger.info(f"Config override from env: {config_key} = {self.config[config_key]}")
                except ValueError as e:
                    logger.error(f"Failed to parse env var {env_var}: {e}")

        logger.info(f"Stats config loaded: {self.config}")

    def get(self, key, default=None):
        return self.config.get(key, default)

    def set(self, key, value):
        self.config[key] = value

    def is_enabled(self):
        return self.config.get('enabled', True)

    def is_autosave_enabled(self):
        return self.config.get('autosave_enabled', True) and self.is_enabled()

    def get_snapshot_file(self):
        return self.config.get('snapshot_file', 'data/stats.db')

    def get_autosave_interval(self):
        """Autosave interval in seconds"""
        return float(self.config.get('autosave_interval', 300))

    def get_top_n(self):
        return int(self.config.get('top_n', 10))
