"""
Interactive stack update workflow.

A run fetches the live template and parameters of a stack, lets the user
edit them, submits the update and watches the stack until it settles:

    START -> FETCHING -> STAGED -> EDITING -> SUBMITTING -> POLLING -> DONE

Any failure before POLLING leaves the remote stack untouched. Once the
update is submitted the run only observes; a stack ending in a failed or
rolled back status is reported and still counts as a finished run.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

import click

from ..config import DEFAULT_EDITOR, DEFAULT_POLL_INTERVAL
from ..editor import launch_editor
from ..errors import StackUpdateError
from .artifacts import (
    ArtifactSet,
    allocate_scratch,
    persist,
    read_artifacts,
    write_artifacts,
)
from .parameters import ParameterRecord
from .stack_manager import StackManager, StatusClass, classify_status

logger = logging.getLogger(__name__)

TOTAL_STEPS = 5

SAVE_PROMPT = "Do you want to save the artifacts on the current directory (y,n) [Default 'n']"

STATUS_COLORS = {
    StatusClass.IN_PROGRESS: "blue",
    StatusClass.FAILED: "red",
    StatusClass.STABLE: "green",
}


class UpdateState(Enum):
    """Where a run currently is."""

    START = "start"
    FETCHING = "fetching"
    STAGED = "staged"
    EDITING = "editing"
    SUBMITTING = "submitting"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UpdateOptions:
    """Per-run settings for a StackUpdater."""

    allow_capabilities: bool = False
    # None asks the user once polling has finished
    save_artifacts: Optional[bool] = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    editor: str = DEFAULT_EDITOR
    scratch_root: Optional[Path] = None
    save_root: Optional[Path] = None


@dataclass
class UpdateResult:
    """Outcome of a completed run."""

    stack_name: str
    final_status: str
    status_class: StatusClass
    polls: int
    artifacts: ArtifactSet
    saved: Optional[ArtifactSet] = None

    @property
    def success(self) -> bool:
        """Check if the stack settled in a stable status."""
        return self.status_class == StatusClass.STABLE


def parse_save_answer(raw: str) -> Optional[bool]:
    """
    Interpret an answer to the save prompt.

    Returns:
        True for y/yes, False for n/no or an empty answer, None otherwise
    """
    answer = raw.strip().lower()
    if answer in ("y", "yes"):
        return True
    if answer in ("n", "no", ""):
        return False
    return None


def _default_prompt(text: str) -> str:
    try:
        return click.prompt(text, default="", show_default=False)
    except click.Abort:
        # closed stdin counts as the default answer
        return ""


class StackUpdater:
    """Drive one fetch, edit, submit and watch cycle for a stack."""

    def __init__(
        self,
        stack_manager: StackManager,
        stack_name: str,
        options: Optional[UpdateOptions] = None,
        editor_launcher: Callable[[str, Path], None] = launch_editor,
        prompt: Callable[[str], str] = _default_prompt,
        sleep: Callable[[float], None] = time.sleep,
        echo: Callable[..., None] = click.echo,
    ):
        """
        Initialize the updater.

        Args:
            stack_manager: Remote stack client
            stack_name: Name of the CloudFormation stack
            options: Run settings (defaults used when omitted)
            editor_launcher: Opens one file in the editor, blocking
            prompt: Reads one line of user input for the save question
            sleep: Delay between status polls
            echo: Writes operator facing output
        """
        self.stack_manager = stack_manager
        self.stack_name = stack_name
        self.options = options or UpdateOptions()
        self.editor_launcher = editor_launcher
        self.prompt = prompt
        self.sleep = sleep
        self.echo = echo
        self.state = UpdateState.START

    @contextmanager
    def _step(self, state: UpdateState) -> Iterator[None]:
        """Enter a state; failures inside it are tagged with the state name."""
        self.state = state
        logger.debug(f"state -> {state.value}")
        try:
            yield
        except StackUpdateError as e:
            if e.step is None:
                e.step = state.value
            self.state = UpdateState.FAILED
            raise
        except Exception:
            self.state = UpdateState.FAILED
            raise

    def _progress(self, number: int, emoji: str, message: str) -> None:
        marker = click.style(f"[{number}/{TOTAL_STEPS}]", bold=True, dim=True)
        self.echo(f"{marker} {emoji} {message}")

    def run(self) -> UpdateResult:
        """Run the whole workflow and return its outcome."""
        with self._step(UpdateState.START):
            artifacts = allocate_scratch(self.stack_name, self.options.scratch_root)
            self._progress(
                1, "📁", f"Storing artifacts in tmp directory: {artifacts.directory}"
            )

        template_body, parameters = self.fetch()
        self.stage(artifacts, template_body, parameters)
        self.edit(artifacts)
        self.submit(artifacts)
        final_status, polls = self.poll()

        self.state = UpdateState.DONE
        saved = self.save_artifacts_if_needed(artifacts)

        return UpdateResult(
            stack_name=self.stack_name,
            final_status=final_status,
            status_class=classify_status(final_status),
            polls=polls,
            artifacts=artifacts,
            saved=saved,
        )

    def fetch(self) -> Tuple[str, List[ParameterRecord]]:
        """Fetch the live template, then the live parameters."""
        with self._step(UpdateState.FETCHING):
            self._progress(2, "🔍", f"Fetching stack {self.stack_name}")
            template_body = self.stack_manager.fetch_template(self.stack_name)
            self.echo("✅ Successfully received CloudFormation template")
            parameters = self.stack_manager.fetch_parameters(self.stack_name)
            self.echo("✅ Successfully received CloudFormation parameters")
        return template_body, parameters

    def stage(
        self,
        artifacts: ArtifactSet,
        template_body: str,
        parameters: List[ParameterRecord],
    ) -> None:
        """Write fetched data into the scratch artifact set."""
        with self._step(UpdateState.STAGED):
            write_artifacts(artifacts, template_body, parameters)

    def edit(self, artifacts: ArtifactSet) -> None:
        """Open each artifact in the editor, template first."""
        with self._step(UpdateState.EDITING):
            self._progress(3, "📝", f"Editing artifacts with {self.options.editor}")
            for path in artifacts.files:
                self.editor_launcher(self.options.editor, path)

    def submit(self, artifacts: ArtifactSet) -> None:
        """Read the edited artifacts back and start the update."""
        with self._step(UpdateState.SUBMITTING):
            template_body, parameters = read_artifacts(artifacts)
            self._progress(4, "🚀", f"Updating stack {self.stack_name}")
            self.stack_manager.submit_update(
                self.stack_name,
                template_body,
                parameters,
                allow_capabilities=self.options.allow_capabilities,
            )

    def poll(self) -> Tuple[str, int]:
        """
        Query the stack status until it leaves the in-progress class.

        Returns:
            Tuple of (final_status, number of status queries)
        """
        polls = 0
        with self._step(UpdateState.POLLING):
            self._progress(5, "⏳", "Waiting for the stack to settle")
            while True:
                status = self.stack_manager.query_status(self.stack_name)
                polls += 1
                status_class = classify_status(status)
                self._report_status(status, status_class)
                if status_class != StatusClass.IN_PROGRESS:
                    return status, polls
                self.sleep(self.options.poll_interval)

    def _report_status(self, status: str, status_class: StatusClass) -> None:
        prefix = click.style("***", bold=True, dim=True)
        styled = click.style(status, fg=STATUS_COLORS[status_class])
        self.echo(f"{prefix} Stack status: {styled}")

    def _save_prompt(self) -> str:
        if self.options.save_root is None:
            return SAVE_PROMPT
        return (
            f"Do you want to save the artifacts in {self.options.save_root} "
            "(y,n) [Default 'n']"
        )

    def _ask_to_save(self) -> bool:
        while True:
            decision = parse_save_answer(self.prompt(self._save_prompt()))
            if decision is not None:
                return decision
            self.echo(click.style("Invalid input, please try again", bold=True, dim=True))

    def save_artifacts_if_needed(self, artifacts: ArtifactSet) -> Optional[ArtifactSet]:
        """
        Copy artifacts next to the user when asked to.

        A failed copy is reported but does not fail the run.
        """
        should_save = self.options.save_artifacts
        if should_save is None:
            should_save = self._ask_to_save()

        if not should_save:
            self.echo("Artifacts are not saved")
            return None

        try:
            saved = persist(artifacts, self.stack_name, self.options.save_root)
        except StackUpdateError as e:
            logger.warning(f"Saving artifacts failed: {e}")
            self.echo(f"⚠️  Unable to save artifacts: {e}", err=True)
            return None

        self.echo(f"Copied cfn artifacts to {saved.directory}/")
        return saved
