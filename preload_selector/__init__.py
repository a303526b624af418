"""
Preload Selector Package

Selects the library build best matched to the host CPU and GPUs and preloads it
into a launched command.
"""

__version__ = '1.0.0'

from .capabilities import CapabilitySet, ComputeCapability, Feature, ExtendedFeature, ExtraFeature
from .hardware_capabilities import ARCHITECTURES, Architecture, compose, find_architecture
from .cpu_detection import CPUDetector, HostCPU
from .gpu_detection import GPUDetector, GPUInfo
from .host import HostProfile, resolve_host_architecture
from .artifacts import Artifact, discover_artifacts, parse_artifact_name
from .selector import ArtifactSelector, RankedArtifact
from .advisory import AdvisoryReporter
from .launcher import PreloadLauncher
from .config import SelectorConfig
from .manager import PreloadManager
from .exceptions import (
    PreloadSelectorError,
    UnsupportedCPUError,
    ArtifactDirectoryError,
    SelectionError,
    NoArtifactsFoundError,
    NoCompatibleArtifactError,
    LaunchError,
)

__all__ = [
    'CapabilitySet',
    'ComputeCapability',
    'Feature',
    'ExtendedFeature',
    'ExtraFeature',
    'ARCHITECTURES',
    'Architecture',
    'compose',
    'find_architecture',
    'CPUDetector',
    'HostCPU',
    'GPUDetector',
    'GPUInfo',
    'HostProfile',
    'resolve_host_architecture',
    'Artifact',
    'discover_artifacts',
    'parse_artifact_name',
    'ArtifactSelector',
    'RankedArtifact',
    'AdvisoryReporter',
    'PreloadLauncher',
    'SelectorConfig',
    'PreloadManager',
    'PreloadSelectorError',
    'UnsupportedCPUError',
    'ArtifactDirectoryError',
    'SelectionError',
    'NoArtifactsFoundError',
    'NoCompatibleArtifactError',
    'LaunchError',
]
