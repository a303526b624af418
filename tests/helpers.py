"""Builders for hosts, GPUs and artifacts used across the tests"""

from pathlib import Path

from preload_selector.artifacts import Artifact
from preload_selector.cpu_detection import HostCPU
from preload_selector.gpu_detection import GPUInfo
from preload_selector.hardware_capabilities import find_architecture
from preload_selector.host import HostProfile


def host_cpu(arch_name, os_enabled_vector=True, os_enabled_wide_vector=True):
    """HostCPU whose physical features are exactly those of a catalog generation"""
    return HostCPU(
        features=find_architecture(arch_name).capabilities,
        os_enabled_vector=os_enabled_vector,
        os_enabled_wide_vector=os_enabled_wide_vector,
        model=f"Test CPU ({arch_name})",
    )


def gpu(index, major, minor):
    return GPUInfo(index=index, name=f"Test GPU {index}", compute_capability=(major, minor))


def host_profile(arch_name, gpus=(), **kwargs):
    return HostProfile.resolve(host_cpu(arch_name, **kwargs), gpus)


def artifact(name, generation, gpu_capabilities=()):
    return Artifact(
        name=name,
        path=Path('/lib') / name,
        architecture=find_architecture(generation),
        gpu_capabilities=tuple(gpu_capabilities),
    )


class FakeCPUDetector:
    def __init__(self, cpu):
        self.cpu = cpu

    def detect(self):
        return self.cpu


class FakeGPUDetector:
    def __init__(self, gpus=()):
        self.gpus = list(gpus)

    def detect_all_gpus(self):
        return list(self.gpus)


def library_dir(root, *names):
    """Directory holding empty files with the given names"""
    root.mkdir(parents=True, exist_ok=True)
    for name in names:
        (root / name).write_bytes(b'')
    return root
