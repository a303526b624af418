"""
GPU Detection Module

Enumerates NVIDIA GPUs and their CUDA compute capabilities through nvidia-smi.
"""

import logging
import subprocess
from typing import List, Optional

from .capabilities import ComputeCapability


class GPUInfo:
    """Information about a detected GPU"""

    def __init__(self, index: int, name: str, compute_capability: ComputeCapability,
                 uuid: str = "", pci_id: str = ""):
        self.index = index
        self.name = name
        self.compute_capability = ComputeCapability(*compute_capability)
        self.uuid = uuid
        self.pci_id = pci_id

    @property
    def label(self) -> str:
        return f"GPU{self.index}"

    def __repr__(self):
        return f"GPU{self.index}({self.name}, compute {self.compute_capability})"


class GPUDetector:
    """Detect NVIDIA GPUs for capability matching"""

    QUERY_FIELDS = 'index,name,uuid,pci.bus_id,compute_cap'

    def __init__(self, logger: logging.Logger, nvidia_smi: str = 'nvidia-smi', timeout: int = 10):
        """
        Initialize GPU detector

        Args:
            logger: Logger instance
            nvidia_smi: nvidia-smi executable
            timeout: Seconds to wait for each nvidia-smi call
        """
        self.logger = logger
        self.nvidia_smi = nvidia_smi
        self.timeout = timeout
        self.gpus: List[GPUInfo] = []

    def _query(self, fields: str) -> Optional[str]:
        """Run an nvidia-smi query, returning its output or None"""
        try:
            result = subprocess.run(
                [self.nvidia_smi, f'--query-gpu={fields}', '--format=csv,noheader,nounits'],
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError:
            self.logger.debug(f"{self.nvidia_smi} not found, no NVIDIA GPUs detected")
            return None
        except subprocess.TimeoutExpired:
            self.logger.warning(f"{self.nvidia_smi} timed out after {self.timeout}s")
            return None

        if result.returncode != 0:
            self.logger.warning(f"{self.nvidia_smi} failed: {result.stderr.strip()}")
            return None
        return result.stdout

    def driver_version(self) -> Optional[str]:
        """Get the NVIDIA driver version"""
        output = self._query('driver_version')
        if not output:
            return None
        lines = output.strip().split('\n')
        return lines[0].strip() if lines else None

    def parse_line(self, line: str) -> Optional[GPUInfo]:
        """
        Parse one CSV line of the GPU query

        Args:
            line: "index, name, uuid, pci bus id, compute capability"

        Returns:
            GPUInfo, or None if the line is malformed
        """
        parts = [p.strip() for p in line.split(',')]
        if len(parts) < 5:
            return None
        try:
            index = int(parts[0])
            major, minor = parts[4].split('.')
            compute_capability = ComputeCapability(int(major), int(minor))
        except ValueError:
            return None
        return GPUInfo(
            index=index,
            name=parts[1],
            compute_capability=compute_capability,
            uuid=parts[2],
            pci_id=parts[3]
        )

    def detect_all_gpus(self) -> List[GPUInfo]:
        """
        Detect all NVIDIA GPUs

        Returns:
            List of detected GPUs in device index order
        """
        self.gpus = []

        output = self._query(self.QUERY_FIELDS)
        if output is None:
            return self.gpus

        driver = self.driver_version()
        if driver:
            self.logger.info(f"Nvidia driver version: {driver}")

        for line in output.strip().split('\n'):
            if not line.strip():
                continue
            gpu = self.parse_line(line)
            if gpu is None:
                self.logger.warning(f"Can't parse nvidia-smi output line: {line!r}")
                continue
            self.gpus.append(gpu)
            self.logger.info(f"{gpu.label}: PCI: {gpu.pci_id}, Model: {gpu.name}, UUID: {gpu.uuid}, "
                             f"CudaComputeCapability: {gpu.compute_capability}")

        if not self.gpus:
            self.logger.info("No nvidia gpu(s) detected")

        self.gpus.sort(key=lambda gpu: gpu.index)
        return self.gpus
