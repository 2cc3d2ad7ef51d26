#!/usr/bin/env python3
"""
Stack update CLI command.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .. import __version__
from ..cloudformation import StackManager, StackUpdater, UpdateOptions
from ..config import load_config, resolve_editor
from ..errors import StackUpdateError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    """Configure process logging for one run."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    if not verbose:
        for noisy in ("boto3", "botocore", "urllib3"):
            logging.getLogger(noisy).setLevel(logging.WARNING)


@click.command()
@click.version_option(version=__version__)
@click.option("--stack-name", "-s", required=True, help="CloudFormation stack name")
@click.option("--region", "-r", help="AWS region")
@click.option("--profile", help="AWS profile to use")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.option(
    "--allow-capabilities",
    "-c",
    is_flag=True,
    help="Grant CAPABILITY_IAM, CAPABILITY_NAMED_IAM and CAPABILITY_AUTO_EXPAND",
)
@click.option(
    "--save-artifacts/--no-save-artifacts",
    default=None,
    help="Save edited artifacts to ./<stack-name>/ (asks when omitted)",
)
@click.option(
    "--save-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory that receives <stack-name>/ when saving (defaults to cwd)",
)
@click.option("--editor", "-e", help="Editor command (defaults to $EDITOR or config)")
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0, min_open=True),
    help="Seconds between stack status checks",
)
def main(
    stack_name: str,
    region: Optional[str],
    profile: Optional[str],
    verbose: bool,
    allow_capabilities: bool,
    save_artifacts: Optional[bool],
    save_dir: Optional[Path],
    editor: Optional[str],
    poll_interval: Optional[float],
) -> None:
    """Fetch, edit and update a live CloudFormation stack."""
    configure_logging(verbose)

    try:
        config = load_config()
        options = UpdateOptions(
            allow_capabilities=allow_capabilities,
            save_artifacts=save_artifacts,
            save_root=save_dir,
            poll_interval=poll_interval or config.poll_interval,
            editor=resolve_editor(editor, config=config),
        )

        manager = StackManager(region=region, profile=profile)
        result = StackUpdater(manager, stack_name, options=options).run()

    except StackUpdateError as e:
        logger.debug("Update failed", exc_info=True)
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    logger.debug(f"Update finished: {result}")


if __name__ == "__main__":
    main()
