"""
Artifact Catalog Module

Discovers candidate library builds in a directory. Requirements are encoded in
the file name:

    <base-name>[_gpu_<major>.<minor>[,<major>.<minor>...]]_cpu_<generation>.<ext>

e.g. libtensorflow_gpu_7.5,8.0_cpu_haswell.so
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .capabilities import CapabilitySet, ComputeCapability, parse_compute_capabilities
from .exceptions import ArtifactDirectoryError
from .hardware_capabilities import ARCHITECTURES, Architecture, find_architecture

ARTIFACT_NAME_RE = re.compile(
    r'(?P<base>.+?)(?:_gpu_(?P<gpu>[^_]+))?_cpu_(?P<cpu>[^.]+)\.(?P<ext>.+)'
)


@dataclass(frozen=True)
class ArtifactName:
    """Fields of a file name that matches the naming grammar"""

    base: str
    generation: str
    gpu_capabilities: Tuple[ComputeCapability, ...]
    extension: str


@dataclass(frozen=True)
class Artifact:
    """A candidate library build"""

    name: str
    path: Path
    architecture: Architecture
    gpu_capabilities: Tuple[ComputeCapability, ...] = ()

    @property
    def required(self) -> CapabilitySet:
        """Minimum CPU features, resolved through the catalog"""
        return self.architecture.capabilities

    @property
    def feature_count(self) -> int:
        return self.architecture.feature_count

    @property
    def is_gpu_agnostic(self) -> bool:
        return not self.gpu_capabilities

    def __str__(self):
        return self.name


def parse_artifact_name(filename: str) -> Optional[ArtifactName]:
    """
    Split a file name according to the naming grammar

    Args:
        filename: Base name of a directory entry

    Returns:
        ArtifactName, or None if the name does not follow the grammar
    """
    match = ARTIFACT_NAME_RE.fullmatch(filename)
    if not match:
        return None
    # a gpu segment not directly followed by _cpu_ ends up in base
    if '_gpu_' in match.group('base'):
        return None

    try:
        gpu_capabilities = parse_compute_capabilities(match.group('gpu') or '')
    except ValueError:
        return None

    return ArtifactName(
        base=match.group('base'),
        generation=match.group('cpu'),
        gpu_capabilities=tuple(gpu_capabilities),
        extension=match.group('ext'),
    )


def load_artifact(path: Path, logger: logging.Logger,
                  catalog: Sequence[Architecture] = ARCHITECTURES) -> Optional[Artifact]:
    """
    Turn a directory entry into an Artifact

    Args:
        path: Entry path
        logger: Logger instance
        catalog: Generations the required CPU name is resolved against

    Returns:
        Artifact, or None if the entry is skipped
    """
    if path.is_symlink():
        logger.warning(f"Skipping symbolic link: {path}")
        return None
    if path.is_dir():
        logger.warning(f"Skipping directory: {path}")
        return None

    parsed = parse_artifact_name(path.name)
    if parsed is None:
        logger.warning(f"Skipping {path}: name does not match <name>[_gpu_<list>]_cpu_<generation>.<ext>")
        return None

    arch = find_architecture(parsed.generation, catalog)
    if arch is None:
        logger.warning(f"Skipping {path}: unknown cpu name: {parsed.generation}")
        return None

    return Artifact(
        name=path.name,
        path=path,
        architecture=arch,
        gpu_capabilities=parsed.gpu_capabilities,
    )


def discover_artifacts(directory: Path, logger: logging.Logger,
                       catalog: Sequence[Architecture] = ARCHITECTURES) -> List[Artifact]:
    """
    Scan a directory for candidate artifacts

    Entries are visited in name order so that rankings are reproducible.

    Args:
        directory: Directory holding the library builds
        logger: Logger instance
        catalog: Generations the required CPU names are resolved against

    Returns:
        Artifacts in name order

    Raises:
        ArtifactDirectoryError: If the directory cannot be listed
    """
    directory = Path(directory)
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise ArtifactDirectoryError(f"Can't read artifact directory {directory}: {e}") from e

    artifacts = []
    for entry in entries:
        artifact = load_artifact(entry, logger, catalog)
        if artifact is not None:
            logger.debug(f"Found {artifact.name}: cpu {artifact.architecture.name}, "
                         f"gpu {[str(cc) for cc in artifact.gpu_capabilities]}")
            artifacts.append(artifact)

    logger.info(f"Found {len(artifacts)} artifact(s) in {directory}")
    return artifacts
