"""
Selector Configuration Module

Handles configuration loading from environment variables, .env files and an
optional YAML config file.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class SelectorConfig:
    """Configuration manager for artifact selection and launch settings"""

    def __init__(self, env_file: str = '.env', config_file: Optional[str] = None):
        """
        Initialize configuration from environment, .env file and YAML file

        Environment variables take precedence over the YAML file.

        Args:
            env_file: Path of the .env file
            config_file: Path of the YAML file, defaults to $PRELOAD_CONFIG_FILE
                or ./preload.yaml
        """
        self.load_env_file(env_file)
        self.file_settings = self.load_config_file(
            config_file or os.getenv('PRELOAD_CONFIG_FILE', 'preload.yaml')
        )

        # Artifacts
        self.library_dir = Path(self._get('PRELOAD_LIBRARY_DIR', 'library_dir', '/local/tensorflow/lib'))
        self.env_var = self._get('PRELOAD_ENV_VAR', 'env_var', 'LD_PRELOAD')

        # Host probing
        self.disable_gpu = self._get_bool('PRELOAD_DISABLE_GPU', 'disable_gpu', False)
        self.disable_avx = self._get_bool('PRELOAD_DISABLE_AVX', 'disable_avx', False)
        self.disable_avx512 = self._get_bool('PRELOAD_DISABLE_AVX512', 'disable_avx512', False)
        self.nvidia_smi = self._get('PRELOAD_NVIDIA_SMI', 'nvidia_smi', 'nvidia-smi')
        self.gpu_timeout = int(self._get('PRELOAD_GPU_TIMEOUT', 'gpu_timeout', '10'))

        # Launch
        self.dry_run = self._get_bool('PRELOAD_DRY_RUN', 'dry_run', False)

        # Logging
        self.log_level = str(self._get('LOG_LEVEL', 'log_level', 'INFO')).upper()
        log_file = self._get('LOG_FILE', 'log_file', '')
        self.log_file = Path(log_file) if log_file else None

    def load_env_file(self, env_file: str):
        """Load environment variables from .env file if it exists"""
        env_path = Path(env_file)
        if env_path.exists():
            with open(env_path) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        key = key.strip()
                        value = value.strip()
                        # Environment variables take precedence over .env
                        if key and value and key not in os.environ:
                            os.environ[key] = value

    def load_config_file(self, config_file: str) -> Dict[str, Any]:
        """
        Load settings from a YAML file

        Args:
            config_file: Path of the YAML file

        Returns:
            Mapping of setting name to value, empty if the file does not exist

        Raises:
            ValueError: If the file is not valid YAML or not a mapping
        """
        config_path = Path(config_file)
        if not config_path.exists():
            return {}

        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"{config_path}: invalid YAML: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: expected a mapping of settings")
        return data

    def _get(self, env_key: str, file_key: str, default: Any) -> Any:
        value = os.getenv(env_key)
        if value is not None:
            return value
        value = self.file_settings.get(file_key)
        # an empty YAML value means "not set"
        return default if value is None else value

    def _get_bool(self, env_key: str, file_key: str, default: bool) -> bool:
        value = self._get(env_key, file_key, default)
        if isinstance(value, bool):
            return value
        return str(value).lower() in ('true', '1', 'yes')

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Invalid LOG_LEVEL: {self.log_level} (must be one of {', '.join(LOG_LEVELS)})")

        if not self.env_var:
            errors.append("PRELOAD_ENV_VAR must not be empty")

        if self.gpu_timeout < 1:
            errors.append(f"Invalid PRELOAD_GPU_TIMEOUT: {self.gpu_timeout} (must be >= 1)")

        return errors
