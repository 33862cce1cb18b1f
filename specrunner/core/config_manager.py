"""Configuration management"""
import copy
import os
import yaml
from dotenv import load_dotenv
from pathlib import Path
from typing import Dict, Any, Optional
from specrunner.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'matching': {
        'ignore_case': False,
    },
    'output': {
        'description_separator': '\n',
    },
    'execution': {
        'continue_on_failure': False,
    },
    'logging': {
        'level': 'INFO',
    },
}


def merge_configs(base: Dict, override: Dict) -> Dict:
    """Deep merge two dictionaries, values from override win"""
    result = copy.deepcopy(base)

    for key, value in (override or {}).items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def config_value(config: Optional[Dict], key: str, default: Any = None) -> Any:
    """Read a dot-notation key from a plain config dict"""
    value: Any = config or {}

    for k in key.split('.'):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value


class ConfigManager:
    """Loads engine settings from YAML, an environment overlay and .env"""

    def __init__(self, config_path: str, environment: str = 'default',
                 dotenv_path: Optional[str] = None):
        self.config_path = Path(config_path)
        self.environment = environment
        self.dotenv_path = dotenv_path
        self.config: Dict[str, Any] = {}

    def load_config(self) -> Dict[str, Any]:
        """Load and merge configuration files on top of the defaults"""
        # Pull .env into the process environment before ${VAR} expansion
        load_dotenv(dotenv_path=self.dotenv_path, override=False)

        loaded: Dict[str, Any] = {}
        if self.config_path.exists():
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        else:
            logger.warning(f"Config file not found: {self.config_path}, using defaults")

        # Load environment specific config
        env_config_path = self.config_path.parent / 'environments' / f'{self.environment}.yaml'
        if env_config_path.exists():
            with open(env_config_path, 'r', encoding='utf-8') as f:
                env_config = yaml.safe_load(f) or {}

            # Overrides replace whole keys of a section instead of deep merging
            if 'overrides' in env_config:
                overrides = env_config.pop('overrides')
                self._apply_overrides(loaded, overrides)

            loaded = merge_configs(loaded, env_config)
        else:
            logger.debug(f"Environment config not found: {env_config_path}")

        self.config = self._process_env_vars(merge_configs(DEFAULT_CONFIG, loaded))

        logger.info(f"Configuration loaded for environment: {self.environment}")
        return self.config

    def _apply_overrides(self, base: Dict, overrides: Dict) -> None:
        """Apply the overrides section of an environment file to base"""
        for section, values in (overrides or {}).items():
            if isinstance(base.get(section), dict) and isinstance(values, dict):
                base[section].update(values)
            else:
                base[section] = values

    def _process_env_vars(self, config: Any) -> Any:
        """Replace ${VAR} with environment variables"""
        if isinstance(config, dict):
            return {k: self._process_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._process_env_vars(item) for item in config]
        elif isinstance(config, str) and config.startswith('${') and config.endswith('}'):
            var_name = config[2:-1]
            return os.environ.get(var_name, config)
        else:
            return config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)"""
        return config_value(self.config, key, default)
