"""
Configuration loader for Subnet Discovery Module.
Handles loading and validation of the YAML sweep configuration with fallback to defaults.
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..core.data_models import DEFAULT_PORTS, PortSet
from ..core.probe import DEFAULT_PROBE_TIMEOUT
from ..utils.error_handler import ConfigurationError
from ..utils.logger import Logger

DEFAULT_MAX_WORKERS = 128


@dataclass(frozen=True)
class SweepConfig:
    """
    Configuration for one subnet sweep.

    Attributes:
        ports: Ports probed on every address, in probe order
        timeout: Per-dial connect timeout in seconds
        max_workers: Upper bound on addresses probed at the same time
    """
    ports: PortSet = field(default_factory=PortSet)
    timeout: float = DEFAULT_PROBE_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self):
        if not isinstance(self.ports, PortSet):
            object.__setattr__(self, "ports", PortSet.from_iterable(self.ports))
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigurationError(
                f"timeout must be a positive number, got {self.timeout!r}",
                config_key="timeout", config_value=self.timeout
            )
        if isinstance(self.max_workers, bool) or not isinstance(self.max_workers, int) or self.max_workers <= 0:
            raise ConfigurationError(
                f"max_workers must be a positive integer, got {self.max_workers!r}",
                config_key="max_workers", config_value=self.max_workers
            )

    def to_dict(self) -> dict:
        return {
            "ports": list(self.ports),
            "timeout": self.timeout,
            "max_workers": self.max_workers,
        }


class ConfigLoader:
    """
    Loads and validates the YAML sweep configuration.
    Falls back to defaults, with a warning, when the file or a value is missing or invalid.
    """

    def __init__(self, config_dir: Optional[str] = None, logger: Optional[Logger] = None):
        """
        Initialize ConfigLoader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to the config directory relative to this file.
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent
        else:
            self.config_dir = Path(config_dir)

        self.logger = logger or Logger()

    def load_sweep_config(self, config_file: str = "sweep_config.yml") -> SweepConfig:
        """
        Load the sweep configuration from a YAML file.

        Expected layout::

            sweep:
              ports: [22, 80, 443]
              timeout: 4
              max_workers: 128

        Args:
            config_file: Name of the sweep configuration file

        Returns:
            SweepConfig with loaded or default values
        """
        config_path = self.config_dir / config_file

        if not config_path.exists():
            self.logger.debug(f"Sweep config file not found at {config_path}. Using default configuration.")
            return SweepConfig()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Error parsing sweep config file {config_path}: {e}")
            self.logger.warning("Using default sweep configuration.")
            return SweepConfig()
        except OSError as e:
            self.logger.error(f"Could not read sweep config file {config_path}: {e}")
            self.logger.warning("Using default sweep configuration.")
            return SweepConfig()

        if not isinstance(config_data, dict) or not isinstance(config_data.get('sweep'), dict):
            self.logger.warning(f"Invalid sweep config structure in {config_path}. Using default configuration.")
            return SweepConfig()

        sweep_data = config_data['sweep']
        return SweepConfig(
            ports=self._validate_ports(sweep_data.get('ports', list(DEFAULT_PORTS))),
            timeout=self._validate_positive_number(sweep_data.get('timeout', DEFAULT_PROBE_TIMEOUT), 'timeout', DEFAULT_PROBE_TIMEOUT),
            max_workers=self._validate_positive_int(sweep_data.get('max_workers', DEFAULT_MAX_WORKERS), 'max_workers', DEFAULT_MAX_WORKERS)
        )

    def _validate_positive_int(self, value: Any, field_name: str, default: int) -> int:
        """
        Validate that a value is a positive integer.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default value to use if validation fails

        Returns:
            Validated integer value or default
        """
        try:
            int_value = int(value)
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}")
            return default
        if int_value <= 0:
            self.logger.warning(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}")
            return default
        return int_value

    def _validate_positive_number(self, value: Any, field_name: str, default: float) -> float:
        try:
            number = float(value)
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be a number. Using default: {default}")
            return default
        if number <= 0:
            self.logger.warning(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}")
            return default
        return number

    def _validate_ports(self, ports: Any) -> PortSet:
        """
        Validate the configured port list.

        Args:
            ports: List of ports, or a comma-separated string

        Returns:
            Validated PortSet or the default one
        """
        try:
            if isinstance(ports, str):
                port_set = PortSet.parse(ports)
            elif isinstance(ports, list):
                port_set = PortSet.from_iterable(ports)
            else:
                raise ConfigurationError(f"ports must be a list, got {type(ports).__name__}")
        except ConfigurationError as e:
            self.logger.warning(f"Invalid ports: {e}. Using default: {list(DEFAULT_PORTS)}")
            return PortSet()

        if not port_set.ports:
            self.logger.warning(f"Empty port list. Using default: {list(DEFAULT_PORTS)}")
            return PortSet()
        return port_set

    def create_default_configs(self) -> Path:
        """
        Write the default sweep configuration file if it doesn't exist.

        Returns:
            Path of the configuration file
        """
        config_path = self.config_dir / "sweep_config.yml"
        if config_path.exists():
            return config_path

        default_config = {'sweep': SweepConfig().to_dict()}

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                yaml.dump(default_config, f, default_flow_style=False, indent=2)
            self.logger.info(f"Created default sweep config at {config_path}")
        except OSError as e:
            self.logger.error(f"Failed to create default sweep config: {e}")
        return config_path
