"""
Local staging of stack artifacts.

Every run works in its own scratch directory under the system temp dir;
artifacts are only copied next to the operator on request.
"""

import logging
import secrets
import shutil
import string
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..errors import (
    ArtifactCopyError,
    ArtifactReadError,
    ArtifactWriteError,
    DirectoryCreateError,
)
from .parameters import ParameterRecord, decode, encode

logger = logging.getLogger(__name__)

PARAMETERS_FILENAME = "parameters.json"
SUFFIX_LENGTH = 10
SUFFIX_ALPHABET = string.ascii_letters + string.digits


@dataclass(frozen=True)
class ArtifactSet:
    """Template and parameters files describing a stack's desired state."""

    directory: Path
    template_path: Path
    parameters_path: Path

    @classmethod
    def in_directory(cls, directory: Path, stack_name: str) -> "ArtifactSet":
        """Artifact paths for a stack inside the given directory."""
        return cls(
            directory=directory,
            template_path=directory / f"{stack_name}.yaml",
            parameters_path=directory / PARAMETERS_FILENAME,
        )

    @property
    def files(self) -> List[Path]:
        return [self.template_path, self.parameters_path]


def _random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(length))


def allocate_scratch(
    stack_name: str, base_dir: Optional[Union[str, Path]] = None
) -> ArtifactSet:
    """
    Create a fresh scratch directory for one run.

    Args:
        stack_name: Name of the CloudFormation stack
        base_dir: Parent directory (defaults to the system temp directory)

    Returns:
        Artifact paths inside the new directory; the files are not created
    """
    parent = Path(base_dir) if base_dir else Path(tempfile.gettempdir())
    directory = parent / f"{stack_name}-{_random_suffix()}"

    try:
        directory.mkdir(parents=True, exist_ok=False)
    except OSError as e:
        raise DirectoryCreateError(
            f"Unable to create scratch directory {directory}: {e}"
        ) from e

    logger.debug(f"allocate_scratch::directory: {directory}")
    return ArtifactSet.in_directory(directory, stack_name)


def write_artifacts(
    artifact_set: ArtifactSet,
    template_body: str,
    parameters: List[ParameterRecord],
) -> None:
    """Write fetched template and parameters into the artifact set."""
    try:
        with open(artifact_set.template_path, "w", encoding="utf-8", newline="") as f:
            f.write(template_body)
        artifact_set.parameters_path.write_bytes(encode(parameters))
    except OSError as e:
        raise ArtifactWriteError(
            f"Unable to write artifacts to {artifact_set.directory}: {e}"
        ) from e


def read_artifacts(artifact_set: ArtifactSet) -> Tuple[str, List[ParameterRecord]]:
    """Read the (possibly edited) template and parameters back."""
    try:
        # utf-8-sig drops a BOM some editors add on save
        with open(artifact_set.template_path, "r", encoding="utf-8-sig", newline="") as f:
            template_body = f.read()
        raw_parameters = artifact_set.parameters_path.read_bytes()
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactReadError(
            f"Unable to read artifacts from {artifact_set.directory}: {e}"
        ) from e

    return template_body, decode(raw_parameters)


def persist(
    artifact_set: ArtifactSet,
    stack_name: str,
    target_root: Optional[Union[str, Path]] = None,
) -> ArtifactSet:
    """
    Copy artifacts into a directory named after the stack.

    A failure on one file does not undo an earlier successful copy; the
    scratch files stay the source of truth.

    Args:
        artifact_set: Scratch artifacts to copy
        stack_name: Name of the CloudFormation stack
        target_root: Where to create the stack directory (defaults to cwd)

    Returns:
        The persisted artifact set
    """
    root = Path(target_root) if target_root else Path.cwd()
    target = ArtifactSet.in_directory(root / stack_name, stack_name)

    try:
        target.directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(
            f"Unable to create directory {target.directory}: {e}"
        ) from e

    for source, destination in zip(artifact_set.files, target.files):
        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            raise ArtifactCopyError(
                f"Unable to copy {source.name} to {destination}: {e}", path=source
            ) from e
        logger.debug(f"persist::copied {source} -> {destination}")

    return target
