"""
Exceptions Module

Fatal conditions that stop an invocation before any child process is launched.
Each carries the exit code the command line reports for it.
"""


class PreloadSelectorError(Exception):
    """Base class for fatal selection errors"""
    exit_code = 1


class UnsupportedCPUError(PreloadSelectorError):
    """No known CPU generation is fully supported by the host"""
    exit_code = 3


class ArtifactDirectoryError(PreloadSelectorError):
    """The artifact directory is missing or unreadable"""
    exit_code = 4


class SelectionError(PreloadSelectorError):
    """No artifact could be selected"""


class NoArtifactsFoundError(SelectionError):
    """The artifact directory holds no usable artifact"""
    exit_code = 5


class NoCompatibleArtifactError(SelectionError):
    """Artifacts were found but none is supported by the host"""
    exit_code = 6


class LaunchError(PreloadSelectorError):
    """The command could not be resolved or executed"""
    exit_code = 7
