"""
Launcher Module

Replaces the current process with the requested command, with the selected
artifact preloaded by the dynamic loader.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .exceptions import LaunchError


def preload_value(artifact_path: Path, existing: Optional[str] = None) -> str:
    """
    Compose the preload list with the artifact first

    Args:
        artifact_path: Library to preload
        existing: Current value of the preload variable, if any

    Returns:
        New value of the preload variable
    """
    if existing:
        return f"{artifact_path}:{existing}"
    return str(artifact_path)


class PreloadLauncher:
    """Launch a command with a library preloaded"""

    def __init__(self, logger: logging.Logger, env_var: str = 'LD_PRELOAD'):
        """
        Initialize launcher

        Args:
            logger: Logger instance
            env_var: Environment variable read by the dynamic loader
        """
        self.logger = logger
        self.env_var = env_var

    def build_environment(self, base_env: Mapping[str, str], artifact_path: Path) -> Dict[str, str]:
        """Copy of base_env with the artifact prepended to the preload variable"""
        env = dict(base_env)
        env[self.env_var] = preload_value(artifact_path, base_env.get(self.env_var))
        return env

    def resolve_command(self, argv: Sequence[str]) -> str:
        """
        Find the executable for a command

        Args:
            argv: Command and its arguments

        Returns:
            Path of the executable

        Raises:
            LaunchError: If there is no command or it is not on PATH
        """
        if not argv:
            raise LaunchError("no command given")

        binary = argv[0]
        if os.path.basename(binary) == binary:
            found = shutil.which(binary)
            if found is None:
                raise LaunchError(f"{binary}: command not found")
            return found
        return binary

    def exec(self, argv: Sequence[str], artifact_path: Path,
             base_env: Optional[Mapping[str, str]] = None):
        """
        Replace the current process with argv

        Does not return on success.

        Args:
            argv: Command and its arguments
            artifact_path: Library to preload
            base_env: Environment to start from, defaults to os.environ

        Raises:
            LaunchError: If the command can't be resolved or executed
        """
        env = self.build_environment(os.environ if base_env is None else base_env, artifact_path)
        binary = self.resolve_command(argv)
        args: List[str] = list(argv)

        self.logger.info(f"Setting {self.env_var}={env[self.env_var]}")
        self.logger.info(f"Executing {args}")

        for handler in self.logger.handlers:
            handler.flush()

        try:
            os.execve(binary, args, env)
        except OSError as e:
            raise LaunchError(f"exec {binary} failed: {e}") from e

    def describe(self, argv: Sequence[str], artifact_path: Path,
                 base_env: Optional[Mapping[str, str]] = None) -> str:
        """The assignment and command exec() would run, as one shell-like line"""
        env = self.build_environment(os.environ if base_env is None else base_env, artifact_path)
        return f"{self.env_var}={env[self.env_var]} {' '.join(argv)}"
