"""
Launching the user's editor on staged artifacts.
"""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Union

from .errors import EditorInvocationError

logger = logging.getLogger(__name__)


def launch_editor(editor: str, path: Union[str, Path]) -> None:
    """
    Open a file in the editor and block until it exits.

    The editor string may carry its own arguments (e.g. "code --wait").

    Raises:
        EditorInvocationError: editor could not start or exited nonzero
    """
    try:
        command = shlex.split(editor) + [str(path)]
        logger.debug(f"launch_editor::command: {command}")
        result = subprocess.run(command, check=False)
    except (OSError, ValueError) as e:
        raise EditorInvocationError(f"Unable to launch editor {editor!r}: {e}") from e

    if result.returncode != 0:
        raise EditorInvocationError(
            f"Editor {editor!r} exited with code {result.returncode} while editing {path}"
        )
