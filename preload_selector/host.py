"""
Host Profile Module

Resolves the running machine to a catalog generation and pairs it with the
enumerated GPUs.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .capabilities import CapabilitySet
from .cpu_detection import HostCPU
from .exceptions import UnsupportedCPUError
from .gpu_detection import GPUInfo
from .hardware_capabilities import ARCHITECTURES, Architecture, bundles_covered_by


def resolve_host_architecture(cpu: HostCPU,
                              catalog: Sequence[Architecture] = ARCHITECTURES) -> Architecture:
    """
    Pick the catalog generation that best describes the host CPU

    The generation with the most features among those fully supported wins;
    on equal feature counts the later catalog entry wins.

    Args:
        cpu: Probed host CPU
        catalog: Generations in definition order

    Returns:
        The resolved generation

    Raises:
        UnsupportedCPUError: If no generation is supported
    """
    best: Optional[Architecture] = None
    for arch in catalog:
        if not cpu.supports(arch.capabilities):
            continue
        if best is None or arch.feature_count >= best.feature_count:
            best = arch

    if best is None:
        raise UnsupportedCPUError("unsupported cpu")
    return best


@dataclass(frozen=True)
class HostProfile:
    """Resolved capability profile of the running machine"""

    cpu: HostCPU
    architecture: Architecture
    gpus: Tuple[GPUInfo, ...] = ()

    @classmethod
    def resolve(cls, cpu: HostCPU, gpus: Sequence[GPUInfo] = (),
                catalog: Sequence[Architecture] = ARCHITECTURES) -> 'HostProfile':
        return cls(cpu=cpu, architecture=resolve_host_architecture(cpu, catalog), gpus=tuple(gpus))

    @property
    def capabilities(self) -> CapabilitySet:
        return self.architecture.capabilities

    @property
    def feature_count(self) -> int:
        return self.architecture.feature_count

    def supports(self, required: CapabilitySet) -> bool:
        return self.cpu.supports(required)

    def bundles(self):
        return bundles_covered_by(self.capabilities)

    def log_summary(self, logger: logging.Logger):
        logger.info(f"CPU: {self.architecture.name} {self.bundles()}")
        for gpu in self.gpus:
            logger.info(f"  - {gpu}")
