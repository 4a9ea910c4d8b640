import os
from pathlib import Path
from typing import Any
import sys


# ═══════════════════════════════════════════════════════════════════
# Environment-Based Configuration System
# ═══════════════════════════════════════════════════════════════════


def safe_print(*args, **kwargs):
    """
    print() that survives consoles which cannot encode emoji / Unicode.
    Characters the console cannot show are replaced with '?'.
    """
    try:
        print(*args, **kwargs)
    except UnicodeEncodeError:
        enc = getattr(sys.stdout, "encoding", "") or "utf-8"
        new_args = []
        for a in args:
            if isinstance(a, str):
                a = a.encode(enc, errors="replace").decode(enc, errors="replace")
            new_args.append(a)
        print(*new_args, **kwargs)


# environment variable -> config key
ENV_MAPPINGS = {
    'IRCSTATS_NICKNAME': 'nickname',
    'IRCSTATS_USERNAME': 'username',
    'IRCSTATS_REALNAME': 'realname',
    'IRCSTATS_NETWORK': 'network',
    'IRCSTATS_SERVERS': 'servers',
    'IRCSTATS_PORT': 'port',
    'IRCSTATS_SSL_USE': 'ssl_use',
    'IRCSTATS_CHANNELS': 'channels',
    'IRCSTATS_LOG_DIR': 'logs_dir',
    'IRCSTATS_LOGS_DIR': 'logs_dir',
    'IRCSTATS_LOG_FILE': 'log_file',
    'IRCSTATS_LOG_MAX_LINES': 'log_max_lines',
    'IRCSTATS_LOG_BACKUP_COUNT': 'log_backup_count',
    'IRCSTATS_LOG_LEVEL': 'log_level',
    'IRCSTATS_QUIET': 'quiet',
}

BOOLEAN_KEYS = ('ssl_use', 'quiet')
INTEGER_KEYS = ('port', 'log_max_lines', 'log_backup_count')


class EnvironmentConfig:
    """
    Connection and logging configuration for the stats collector.
    Loads values from .env files and environment variables.
    """

    def __init__(self):
        self.config = {}
        self.instance_name = os.getenv('IRCSTATS_INSTANCE_NAME', 'main')
        self.load_configuration()

    def load_configuration(self):
        """Load configuration from environment and .env files"""

        defaults = {
            # Identity
            'nickname': 'StatsBoT',
            'username': 'stats',
            'realname': 'IRC statistics collector',

            # Network & connection
            'network': '',
            'servers': ['irc.libera.chat 6667'],
            'port': 6667,
            'ssl_use': False,
            'channels': ['#ircstats'],

            # Logging
            'logs_dir': 'logs',
            'log_file': 'ircstats.log',
            'log_max_lines': 100000,
            'log_backup_count': 3,
            'log_level': 'INFO',

            # Skip the startup summary
            'quiet': False,
        }

        self.config = defaults.copy()

        instance_env_files = [
            f'instances/{self.instance_name}/.env',
            f'.env.{self.instance_name}',
            '.env'
        ]

        for env_file in instance_env_files:
            if Path(env_file).exists():
                safe_print(f"📋 Loading configuration from {env_file}")
                self._load_env_file(env_file)
                break

        # Direct environment variables have the highest priority
        self._load_from_environment()

        self._process_configuration()

        if not self.config['quiet']:
            self._show_config_summary()

    def _load_env_file(self, env_file: str):
        """Load KEY=value pairs from a .env file"""
        try:
            with open(env_file, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()

                    if not line or line.startswith('#') or '=' not in line:
                        continue

                    key, value = line.split('=', 1)
                    config_key = ENV_MAPPINGS.get(key.strip())
                    if config_key:
                        self.config[config_key] = self._convert_value(config_key, value.strip().strip('"\''))

        except OSError as e:
            safe_print(f"⚠️ Error loading {env_file}: {e}")

    def _load_from_environment(self):
        for env_key, config_key in ENV_MAPPINGS.items():
            if env_key in os.environ:
                self.config[config_key] = self._convert_value(config_key, os.environ[env_key])

    def _convert_value(self, key: str, value: str) -> Any:
        """Convert a string value to the type the key expects"""
        if key in BOOLEAN_KEYS:
            return value.lower() in ['true', '1', 'yes', 'on']

        if key in INTEGER_KEYS:
            try:
                return int(value)
            except ValueError:
                safe_print(f"⚠️ Invalid integer value for {key}: {value}")
                return self.config.get(key, 0)

        if key == 'servers':
            # host1:port1,host2 -> ["host1 port1", "host2"]; a missing port means config 'port'
            servers = []
            for server in value.split(','):
                server = server.strip()
                if not server:
                    continue
                if ':' in server:
                    host, port = server.split(':', 1)
                    servers.append(f"{host} {port}")
                else:
                    servers.append(server)
            return servers

        if key == 'channels':
            return [ch.strip() for ch in value.split(',') if ch.strip()]

        return value

    def _process_configuration(self):
        """Fill derived values and create directories"""

        if not self.config['network'] and self.config['servers']:
            self.config['network'] = self.config['servers'][0].split()[0]

        if self.instance_name != 'main':
            if not self.config['logs_dir'].startswith('instances/'):
                self.config['logs_dir'] = f"instances/{self.instance_name}/logs"
            if not self.config['log_file'].startswith(self.instance_name):
                self.config['log_file'] = f"{self.instance_name}.log"

        Path(self.config['logs_dir']).mkdir(parents=True, exist_ok=True)

    def server_list(self) -> list[tuple[str, int]]:
        """Configured servers as (host, port) pairs"""
        result = []
        for entry in self.config['servers']:
            parts = entry.split()
            if len(parts) > 1 and parts[1].isdigit():
                result.append((parts[0], int(parts[1])))
            else:
                result.append((parts[0], int(self.config['port'])))
        return result

    def _show_config_summary(self):
        safe_print(f"📊 IRC Stats Configuration Summary")
        safe_print(f"   Instance: {self.instance_name}")
        safe_print(f"   Nickname: {self.config['nickname']}")
        safe_print(f"   Network: {self.config['network']}")
        safe_print(f"   Servers: {', '.join(self.config['servers'])}")
        safe_print(f"   Channels: {', '.join(self.config['channels'])}")
        safe_print(f"   Log Level: {self.config['log_level']}")

        if self.config['ssl_use']:
            safe_print(f"   SSL: Enabled")

    def __getattr__(self, name: str) -> Any:
        """Allow accessing config values as attributes"""
        if name != 'config' and name in self.config:
            return self.config[name]
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

    def get(self, name: str, default: Any = None) -> Any:
        """Get configuration value with default"""
        return self.config.get(name, default)


config = EnvironmentConfig()
