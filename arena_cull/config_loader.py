import yaml
from pathlib import Path
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)


class Config:
    """Load and manage configuration"""

    def __init__(self, config_path: Path = Path("arena_cull.yaml")):
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML, merged over the defaults"""
        config = self._default_config()
        if not self.config_path.exists():
            return config

        try:
            with open(self.config_path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")
            return config

        if not isinstance(loaded, dict):
            logger.warning(f"Ignoring {self.config_path}: top level must be a mapping")
            return config

        for key, value in loaded.items():
            if isinstance(value, dict) and isinstance(config.get(key), dict):
                config[key].update(value)
            else:
                config[key] = value
        return config

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration"""
        return {
            "extensions": ["ARW", "CR2", "CR3", "NEF", "DNG", "RAF", "JPG", "JPEG"],
            "thumbnail": {"max_edge": 256},
            "preview": {"max_edge": 1500},
            "workers": {"max": 4},
            "tags": {"backend": "xmp"}  # xmp, memory or none
        }

    def get(self, key: str, default=None):
        """Get config value by dot notation"""
        keys = key.split('.')
        value = self.config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default
