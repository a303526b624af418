"""
Advisory Module

Warns about host capabilities the selected artifact leaves unused. Advisories
never change the selection or the exit status.
"""

import logging
from typing import List

from .artifacts import Artifact
from .hardware_capabilities import bundles_covered_by
from .host import HostProfile
from .selector import unsupported_gpus


class AdvisoryReporter:
    """Report unexploited CPU features and unsupported GPUs"""

    def __init__(self, host: HostProfile, logger: logging.Logger):
        self.host = host
        self.logger = logger

    def unexploited_bundles(self, artifact: Artifact) -> List[str]:
        """Feature bundles the host has that the artifact does not require"""
        leftover = self.host.capabilities.difference(artifact.required)
        return bundles_covered_by(leftover)

    def unsupported_devices(self, artifact: Artifact) -> List[str]:
        """Labels of host GPUs the artifact has no build for"""
        return [gpu.label for gpu in unsupported_gpus(self.host, artifact)]

    def report(self, artifact: Artifact) -> List[str]:
        """
        Build and log the advisories for a selected artifact

        Args:
            artifact: The selected artifact

        Returns:
            Warning messages, empty if the artifact exploits the host fully
        """
        warnings = []

        bundles = self.unexploited_bundles(artifact)
        if bundles:
            warnings.append(
                "following CPU features are unsupported in the selected build, "
                f"performance can be below optimal: {bundles}"
            )

        devices = self.unsupported_devices(artifact)
        if devices:
            warnings.append(f"following GPU devices are unsupported in the selected build: {devices}")

        for warning in warnings:
            self.logger.warning(warning)
        return warnings
