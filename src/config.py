"""Configuration Management with Pydantic.

This module implements the resolver configuration model using Pydantic for
parsing and validation of YAML/JSON configuration files with environment
variable overrides.
"""

import os
import threading
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field

from src.log_config import configure_logging
from src.resolver.load_order import ResolutionStrategy

# Initialize logger
logger = structlog.get_logger(__name__)

# Constants
ENV_PREFIX = "LOADORDER_"
LARGE_SCAN_GRAPH_THRESHOLD = 10_000


class ResolverConfig(BaseModel):
    """Load-order resolver configuration.

    Attributes:
        strategy: How the resolver finds the next ready node
        max_nodes: Optional upper bound on graph size, None for unbounded
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON instead of console output
    """

    strategy: ResolutionStrategy = Field(
        default=ResolutionStrategy.READY_QUEUE,
        description="Ready-node selection strategy",
    )
    max_nodes: int | None = Field(
        default=None,
        ge=1,
        description="Maximum number of nodes accepted for one resolution",
    )
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=True,
        description="Emit JSON log lines",
    )

    model_config = {"str_strip_whitespace": True}

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ResolverConfig":
        """Load configuration from a YAML (or JSON) file.

        Args:
            path: Path to the configuration file

        Returns:
            Parsed and validated ResolverConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If the file is empty or not valid YAML
            pydantic.ValidationError: If a value is out of range
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if not config_data:
            msg = "Configuration file is empty"
            raise ValueError(msg)

        if not isinstance(config_data, dict):
            msg = "Configuration file must contain a mapping"
            raise ValueError(msg)

        config = cls(**cls._apply_env_overrides(config_data))

        logger.info(
            "configuration_loaded",
            strategy=config.strategy.value,
            max_nodes=config.max_nodes,
            logging_level=config.logging_level,
        )

        return config

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern LOADORDER_<KEY>, for example
        LOADORDER_STRATEGY or LOADORDER_MAX_NODES.

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        config_data = dict(config_data)

        for key in cls.model_fields:
            env_var = f"{ENV_PREFIX}{key.upper()}"
            value = os.environ.get(env_var)
            if value is None:
                continue

            if key == "json_logs":
                config_data[key] = value.lower() in ("true", "1", "yes")
            elif key == "max_nodes":
                # Empty clears the bound; pydantic coerces and validates the rest.
                config_data[key] = value or None
            else:
                config_data[key] = value

            logger.debug("env_override_applied", env_var=env_var, config_path=key)

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        if self.strategy is ResolutionStrategy.SCAN:
            if self.max_nodes is None:
                warnings.append(
                    "Scan strategy without max_nodes - resolution time is quadratic in graph size",
                )
            elif self.max_nodes > LARGE_SCAN_GRAPH_THRESHOLD:
                warnings.append(
                    f"Scan strategy with max_nodes={self.max_nodes} - "
                    "consider the ready_queue strategy for large graphs",
                )

        if self.logging_level == "DEBUG":
            warnings.append("DEBUG logging emits one line per resolved node")

        return warnings

    def apply_logging(self) -> None:
        """Configure structlog from the logging settings of this config."""
        configure_logging(self.logging_level, self.json_logs)


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: ResolverConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> ResolverConfig:
        """Load configuration from file and apply its logging settings.

        Args:
            config_path: Path to configuration file. If None, looks for
                loadorder.yaml, loadorder.yml or loadorder.json in the current
                directory.

        Returns:
            Loaded ResolverConfig instance

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in ["loadorder.yaml", "loadorder.yml", "loadorder.json"]:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                msg = (
                    "No configuration file found. "
                    "Expected loadorder.yaml, loadorder.yml, or loadorder.json"
                )
                raise FileNotFoundError(msg)

        config = ResolverConfig.from_yaml(config_path)
        config.apply_logging()
        return config

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> ResolverConfig:
        """Get configuration instance (singleton pattern).

        Uses double-checked locking so concurrent first calls load the file
        only once.

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            ResolverConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> ResolverConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> ResolverConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ConfigManager",
    "ResolverConfig",
    "get_config",
    "load_config",
    "reset_config",
]
