"""
CPU Detection Module

Detects the CPU features of the running host and whether the operating system
allows the vector extensions that need extended register state.
"""

import logging
import platform
from dataclasses import dataclass
from typing import FrozenSet, Optional

import cpuinfo
import psutil

from .capabilities import CapabilitySet
from .hardware_capabilities import VECTOR_TIER, WIDE_VECTOR_TIER


PROC_CPUINFO = '/proc/cpuinfo'


def read_proc_flags(path: str = PROC_CPUINFO) -> FrozenSet[str]:
    """
    Read the CPU flags the Linux kernel reports

    Args:
        path: Location of the cpuinfo file

    Returns:
        Flags of the first processor entry

    Raises:
        OSError: If the file can't be read
    """
    with open(path, 'r') as f:
        for line in f:
            key, _, value = line.partition(':')
            if key.strip() == 'flags':
                return frozenset(value.split())
    return frozenset()


@dataclass(frozen=True)
class HostCPU:
    """Physical CPU features plus OS vector enablement"""

    features: CapabilitySet
    os_enabled_vector: bool
    os_enabled_wide_vector: bool
    model: str = ""
    cores_physical: int = 0
    cores_logical: int = 0

    def supports(self, required: CapabilitySet) -> bool:
        """
        Check that a required feature set can be used on this host

        Every required bit must be present in silicon, and required bits from a
        vector tier the OS has not enabled make the whole set unsupported.

        Args:
            required: CPU features a generation or artifact needs

        Returns:
            True if fully supported
        """
        if not self.os_enabled_wide_vector and required.intersects(WIDE_VECTOR_TIER):
            return False
        if not self.os_enabled_vector and required.intersects(VECTOR_TIER):
            return False
        return required.issubset(self.features)


class CPUDetector:
    """Detect CPU capabilities of the running host"""

    def __init__(self, logger: logging.Logger, disable_avx: bool = False,
                 disable_avx512: bool = False, proc_cpuinfo: Optional[str] = None):
        """
        Initialize CPU detector

        Args:
            logger: Logger instance
            disable_avx: Treat AVX state as not enabled by the OS
            disable_avx512: Treat AVX-512 state as not enabled by the OS
            proc_cpuinfo: Kernel cpuinfo file read on Linux
        """
        self.logger = logger
        self.disable_avx = disable_avx
        self.disable_avx512 = disable_avx512
        self.proc_cpuinfo = proc_cpuinfo or PROC_CPUINFO
        self._info: Optional[dict] = None
        self._kernel_flags: Optional[FrozenSet[str]] = None

    def _cpu_info(self) -> dict:
        if self._info is None:
            self._info = cpuinfo.get_cpu_info()
        return self._info

    def _flags(self):
        return self._cpu_info().get('flags', [])

    def kernel_flags(self) -> FrozenSet[str]:
        """
        Flags from the kernel's own cpuinfo, without py-cpuinfo's CPUID additions

        The kernel drops xsave, avx and avx512* when it does not enable the
        matching register state, so these flags reflect XCR0.

        Returns:
            Reported flags, empty if the file can't be read
        """
        if self._kernel_flags is None:
            try:
                self._kernel_flags = read_proc_flags(self.proc_cpuinfo)
            except OSError as e:
                self.logger.warning(f"Can't read {self.proc_cpuinfo}: {e}, "
                                    f"treating AVX state as not enabled")
                self._kernel_flags = frozenset()
        return self._kernel_flags

    def physical_features(self) -> CapabilitySet:
        """CPU features reported as present"""
        return CapabilitySet.from_flags(self._flags())

    def _kernel_enabled(self, flag: str) -> bool:
        # py-cpuinfo merges raw CPUID bits, so a flag it reports may be OS-disabled
        return flag in self.kernel_flags() or flag not in self._flags()

    def os_enabled_vector(self) -> bool:
        """Whether the OS manages the AVX register state"""
        if self.disable_avx:
            return False
        if platform.system() == 'Linux':
            return 'xsave' in self.kernel_flags() and self._kernel_enabled('avx')
        return 'osxsave' in self._flags()

    def os_enabled_wide_vector(self) -> bool:
        """Whether the OS manages the AVX-512 register state"""
        if self.disable_avx512 or not self.os_enabled_vector():
            return False
        if platform.system() == 'Linux':
            return self._kernel_enabled('avx512f')
        return True

    def detect(self) -> HostCPU:
        """
        Probe the host CPU

        Returns:
            HostCPU describing the running machine
        """
        host = HostCPU(
            features=self.physical_features(),
            os_enabled_vector=self.os_enabled_vector(),
            os_enabled_wide_vector=self.os_enabled_wide_vector(),
            model=self._cpu_info().get('brand_raw', ''),
            cores_physical=psutil.cpu_count(logical=False) or 0,
            cores_logical=psutil.cpu_count(logical=True) or 0,
        )

        self.logger.info(f"Detected CPU: {host.model}")
        self.logger.info(f"  Physical cores: {host.cores_physical}, Logical: {host.cores_logical}")
        self.logger.debug(f"  Features: {' '.join(host.features.feature_names())}")
        if not host.os_enabled_vector:
            self.logger.info("  AVX state is not enabled by the OS")
        elif not host.os_enabled_wide_vector:
            self.logger.info("  AVX-512 state is not enabled by the OS")

        return host
