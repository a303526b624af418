"""
Preload Manager Module

Runs one selection: probe the host, discover artifacts, select, report
advisories and launch the command.
"""

import logging
from typing import List, Optional, Sequence

from .advisory import AdvisoryReporter
from .artifacts import Artifact, discover_artifacts
from .cpu_detection import CPUDetector
from .gpu_detection import GPUDetector
from .host import HostProfile
from .launcher import PreloadLauncher
from .selector import ArtifactSelector, RankedArtifact


class PreloadManager:
    """Sequence host probing, artifact selection and launch"""

    def __init__(self, config, cpu_detector: Optional[CPUDetector] = None,
                 gpu_detector: Optional[GPUDetector] = None):
        """
        Initialize preload manager

        Args:
            config: SelectorConfig instance
            cpu_detector: CPU probe, built from config if not given
            gpu_detector: GPU probe, built from config if not given
        """
        self.config = config
        self.logger = self._setup_logger()
        self.cpu_detector = cpu_detector or CPUDetector(
            self.logger,
            disable_avx=config.disable_avx,
            disable_avx512=config.disable_avx512
        )
        self.gpu_detector = gpu_detector
        if self.gpu_detector is None and not config.disable_gpu:
            self.gpu_detector = GPUDetector(self.logger, config.nvidia_smi, config.gpu_timeout)
        self.launcher = PreloadLauncher(self.logger, config.env_var)
        self._host: Optional[HostProfile] = None

    def _setup_logger(self) -> logging.Logger:
        """
        Setup logging configuration

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger('preload_selector')
        logger.setLevel(getattr(logging, self.config.log_level))

        if logger.handlers:
            return logger

        # Console handler (stderr, stdout belongs to the launched command)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, self.config.log_level))
        console_formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s')
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

        # File handler
        if self.config.log_file:
            file_handler = logging.FileHandler(self.config.log_file)
            file_handler.setLevel(getattr(logging, self.config.log_level))
            file_formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s - %(message)s')
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)

        return logger

    @property
    def host(self) -> HostProfile:
        """Host profile, probed on first use and fixed for the rest of the run"""
        if self._host is None:
            cpu = self.cpu_detector.detect()
            gpus = self.gpu_detector.detect_all_gpus() if self.gpu_detector else []
            self._host = HostProfile.resolve(cpu, gpus)
            self._host.log_summary(self.logger)
        return self._host

    def discover(self) -> List[Artifact]:
        return discover_artifacts(self.config.library_dir, self.logger)

    def rank(self) -> List[RankedArtifact]:
        """All compatible artifacts, best first"""
        return ArtifactSelector(self.host, self.logger).rank(self.discover())

    def select(self) -> Artifact:
        """
        Select the artifact for this host and report advisories

        Returns:
            The selected artifact
        """
        artifact = ArtifactSelector(self.host, self.logger).select(self.discover())
        self.advise(artifact)
        return artifact

    def advise(self, artifact: Artifact) -> List[str]:
        return AdvisoryReporter(self.host, self.logger).report(artifact)

    def run(self, argv: Sequence[str]) -> Optional[str]:
        """
        Select an artifact and launch argv with it preloaded

        Args:
            argv: Command and its arguments

        Returns:
            The command line that would run when dry_run is set; otherwise
            does not return
        """
        artifact = self.select()
        if self.config.dry_run:
            return self.launcher.describe(argv, artifact.path)
        self.launcher.exec(argv, artifact.path)
        return None
