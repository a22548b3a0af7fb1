import os
from pathlib import Path
from string import Template
from typing import Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from litscout.models.config import NewsreaderConfig

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = "config/newsreader.yaml"


class ConfigValidationError(Exception):
    """Configuration validation failed"""

    pass


class ConfigManager:
    """Loads and validates the newsreader configuration file"""

    def __init__(
        self,
        config_path: Optional[str] = None,
        load_env: bool = True,
    ):
        # Falling back to defaults is only allowed for the implicit path
        self.explicit_path = config_path is not None
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self.env_loaded = not load_env
        self._config: Optional[NewsreaderConfig] = None

    def load_config(self) -> NewsreaderConfig:
        """Load and validate configuration"""
        if self._config:
            return self._config

        # 1. Load environment
        if not self.env_loaded:
            load_dotenv()
            self.env_loaded = True

        # 2. Check file existence
        if not self.config_path.exists():
            if self.explicit_path:
                raise FileNotFoundError(
                    f"Configuration file not found: {self.config_path}"
                )
            logger.info("config_defaults_used", path=str(self.config_path))
            self._config = NewsreaderConfig()
            return self._config

        # 3. Read YAML
        try:
            raw_content = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        # 4. Substitute ${VAR} references, then parse
        try:
            substituted = Template(raw_content).safe_substitute(os.environ)
            config_data = yaml.safe_load(substituted) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )

        if not isinstance(config_data, dict):
            raise ConfigValidationError("Configuration root must be a mapping")

        # 5. Validate with Pydantic
        try:
            self._config = NewsreaderConfig(**config_data)
        except PydanticValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            path=str(self.config_path),
            queries=len(self._config.queries),
            sources=[s.value for s, v in self._config.sources.items() if v.enabled],
        )
        return self._config
