import json
import os
import yaml
import logging
from typing import Dict, Any

from pydantic import ValidationError

from stock_market_sim.models import (
    AppConfig,
    EventEngineConfig,
    InstrumentConfig,
    LedgerConfig,
    PriceModelConfig,
    SchedulerConfig,
    SentimentConfig,
)

logger = logging.getLogger(__name__)


class ConfigFactory:
    """Factory for creating configuration objects from YAML or JSON files"""

    @staticmethod
    def load_config(config_path: str) -> AppConfig:
        """
        Load configuration from a YAML or JSON file

        Args:
            config_path: Path to the configuration file

        Returns:
            AppConfig object with the loaded configuration

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file cannot be parsed or fails validation
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                if config_path.endswith(".json"):
                    raw_config = json.load(f)
                else:
                    # Default to YAML for .yaml or .yml files
                    raw_config = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error(f"Error parsing configuration file {config_path}: {e}")
            raise ValueError(f"Error parsing configuration file: {e}") from e

        if raw_config is None:
            raw_config = {}
        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration file must contain a mapping at root level, got {type(raw_config).__name__}")

        raw_config = ConfigFactory._expand_env_vars(raw_config)
        logger.info(f"Loaded configuration from {config_path}")
        return ConfigFactory.create_app_config(raw_config)

    @staticmethod
    def _expand_env_vars(config: Any) -> Any:
        """
        Recursively expand environment variables in configuration values.
        Supports ${VAR} and $VAR syntax.
        """
        if isinstance(config, dict):
            return {k: ConfigFactory._expand_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [ConfigFactory._expand_env_vars(v) for v in config]
        elif isinstance(config, str):
            return os.path.expandvars(config)
        else:
            return config

    @staticmethod
    def create_app_config(raw_config: Dict[str, Any]) -> AppConfig:
        """
        Create an AppConfig object from a raw configuration dictionary.
        Missing sections fall back to their defaults.
        """
        try:
            return AppConfig(
                user_id=str(raw_config.get("user_id", "local")),
                seed=raw_config.get("seed"),
                data_source=raw_config.get("data_source", "synthetic"),
                price_model=PriceModelConfig(**(raw_config.get("price_model") or {})),
                sentiment=SentimentConfig(**(raw_config.get("sentiment") or {})),
                events=EventEngineConfig(**(raw_config.get("events") or {})),
                ledger=LedgerConfig(**(raw_config.get("ledger") or {})),
                scheduler=SchedulerConfig(**(raw_config.get("scheduler") or {})),
                instruments=[ConfigFactory._create_instrument_config(i) for i in raw_config.get("instruments") or []],
            )
        except ValidationError as e:
            logger.error(f"Invalid configuration: {e}")
            raise ValueError(f"Invalid configuration: {e}") from e

    @staticmethod
    def _create_instrument_config(raw: Any) -> InstrumentConfig:
        # a bare string is shorthand for a symbol with everything else generated
        if isinstance(raw, str):
            return InstrumentConfig(symbol=raw)
        return InstrumentConfig(**raw)
