"""
Artifact Selector Module

Filters candidate artifacts down to the ones the host can run and ranks them by
how many host CPU features each leaves unused; among artifacts tied on that,
by how many host GPUs it does not support. Remaining ties keep discovery order.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .artifacts import Artifact
from .exceptions import NoArtifactsFoundError, NoCompatibleArtifactError
from .gpu_detection import GPUInfo
from .host import HostProfile


def unsupported_gpus(host: HostProfile, artifact: Artifact) -> List[GPUInfo]:
    """Host GPUs whose compute capability the artifact has no build for"""
    if artifact.is_gpu_agnostic:
        return []
    supported = set(artifact.gpu_capabilities)
    return [gpu for gpu in host.gpus if gpu.compute_capability not in supported]


@dataclass(frozen=True)
class RankedArtifact:
    """An artifact with both of its ranking keys"""

    artifact: Artifact
    cpu_priority: int
    gpu_priority: int


class ArtifactSelector:
    """Select the best artifact for a host"""

    def __init__(self, host: HostProfile, logger: logging.Logger):
        """
        Initialize artifact selector

        Args:
            host: Resolved host profile
            logger: Logger instance
        """
        self.host = host
        self.logger = logger

    def is_compatible(self, artifact: Artifact) -> bool:
        return self.host.supports(artifact.required)

    def compatible(self, artifacts: Sequence[Artifact]) -> List[Artifact]:
        """Artifacts whose CPU requirement the host fully supports, in input order"""
        result = []
        for artifact in artifacts:
            if self.is_compatible(artifact):
                result.append(artifact)
            else:
                self.logger.debug(f"{artifact.name} requires {artifact.architecture.name}, "
                                  f"not supported by this host")
        return result

    def cpu_priority(self, artifact: Artifact) -> int:
        """Number of host CPU features the artifact does not make use of"""
        return self.host.feature_count - artifact.feature_count

    def gpu_priority(self, artifact: Artifact) -> int:
        """Number of host GPUs whose compute capability the artifact does not support"""
        return len(unsupported_gpus(self.host, artifact))

    def rank(self, artifacts: Sequence[Artifact]) -> List[RankedArtifact]:
        """
        Rank the compatible artifacts, best first

        Args:
            artifacts: Candidates in discovery order

        Returns:
            Compatible artifacts with their priorities

        Raises:
            NoArtifactsFoundError: If there are no candidates at all
            NoCompatibleArtifactError: If no candidate is supported by the host
        """
        if not artifacts:
            raise NoArtifactsFoundError("no artifacts found")

        candidates = self.compatible(artifacts)
        if not candidates:
            raise NoCompatibleArtifactError(
                f"none of {len(artifacts)} artifact(s) is compatible with "
                f"cpu {self.host.architecture.name}"
            )

        # stable sorts: the last pass is the primary key
        ranked = sorted(candidates, key=self.gpu_priority)
        ranked = sorted(ranked, key=self.cpu_priority)

        return [RankedArtifact(a, self.cpu_priority(a), self.gpu_priority(a)) for a in ranked]

    def select(self, artifacts: Sequence[Artifact]) -> Artifact:
        """
        Select the best artifact

        Args:
            artifacts: Candidates in discovery order

        Returns:
            The top ranked artifact
        """
        best = self.rank(artifacts)[0]
        self.logger.info(f"Selected {best.artifact.name} "
                         f"(cpu priority {best.cpu_priority}, gpu priority {best.gpu_priority})")
        return best.artifact
