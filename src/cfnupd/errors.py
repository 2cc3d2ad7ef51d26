"""
Errors raised by the stack update workflow.
"""

from pathlib import Path
from typing import Optional, Union


class StackUpdateError(Exception):
    """Base class for every failure surfaced to the operator."""

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self) -> str:
        if self.step:
            return f"{self.step}: {self.message}"
        return self.message


class ConfigurationError(StackUpdateError):
    """Raised when the user configuration file cannot be used."""


class RemoteNotFoundError(StackUpdateError):
    """The remote API returned no stack for the given name."""


class RemoteAmbiguousError(StackUpdateError):
    """The remote API returned more than one stack for the given name."""


class RemoteRejectedError(StackUpdateError):
    """The remote API refused the update request."""


class RemoteUnavailableError(StackUpdateError):
    """The remote API could not be reached or answered incompletely."""


class TemplateUnavailableError(StackUpdateError):
    """The remote API returned no template body."""


class MalformedParameterDataError(StackUpdateError):
    """The parameter file does not hold a list of parameter records."""


class MissingParameterKeyError(MalformedParameterDataError):
    """A parameter record has no parameter_key."""


class DirectoryCreateError(StackUpdateError):
    """A scratch or save directory could not be created."""


class ArtifactWriteError(StackUpdateError):
    """Fetched artifacts could not be written to the scratch directory."""


class ArtifactReadError(StackUpdateError):
    """Edited artifacts could not be read back from the scratch directory."""


class ArtifactCopyError(StackUpdateError):
    """An artifact could not be copied to the save directory."""

    def __init__(self, message: str, path: Union[str, Path], step: Optional[str] = None):
        super().__init__(message, step=step)
        self.path = Path(path)


class EditorInvocationError(StackUpdateError):
    """The editor could not be launched or exited with a nonzero status."""
