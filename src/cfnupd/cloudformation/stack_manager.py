"""
CloudFormation stack operations used by the update workflow.
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import (
    RemoteAmbiguousError,
    RemoteNotFoundError,
    RemoteRejectedError,
    RemoteUnavailableError,
    TemplateUnavailableError,
)
from .parameters import ParameterRecord, to_remote

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-west-2"

ALL_CAPABILITIES = [
    "CAPABILITY_IAM",
    "CAPABILITY_NAMED_IAM",
    "CAPABILITY_AUTO_EXPAND",
]


class StatusClass(Enum):
    """Coarse classification of a stack status."""

    IN_PROGRESS = "in_progress"
    FAILED = "failed"
    STABLE = "stable"


def classify_status(status: str) -> StatusClass:
    """Classify a stack status by substring; in-progress takes precedence."""
    if "IN_PROGRESS" in status:
        return StatusClass.IN_PROGRESS
    if "FAIL" in status or "ROLLBACK" in status:
        return StatusClass.FAILED
    return StatusClass.STABLE


def _error_message(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Message") or error)


def _is_not_found(error: ClientError) -> bool:
    return "does not exist" in _error_message(error)


class StackManager:
    """Fetch, update and watch a single CloudFormation stack."""

    def __init__(self, region: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize stack manager.

        Args:
            region: AWS region (falls back to the session default, then us-west-2)
            profile: AWS profile to use
        """
        self.profile = profile

        session_args = {}
        if region:
            session_args["region_name"] = region
        if profile:
            session_args["profile_name"] = profile

        session = boto3.Session(**session_args)
        self.region = region or session.region_name or DEFAULT_REGION
        self.cloudformation = session.client("cloudformation", region_name=self.region)

    def _describe_single_stack(self, stack_name: str) -> Dict[str, Any]:
        """Describe a stack, insisting on exactly one match."""
        try:
            response = self.cloudformation.describe_stacks(StackName=stack_name)
        except ClientError as e:
            if _is_not_found(e):
                raise RemoteNotFoundError(f"Stack {stack_name} does not exist") from e
            raise RemoteUnavailableError(
                f"Unable to describe stack {stack_name}: {_error_message(e)}"
            ) from e
        except BotoCoreError as e:
            raise RemoteUnavailableError(
                f"Unable to describe stack {stack_name}: {e}"
            ) from e

        logger.debug(f"describe_stacks::response: {response}")

        stacks = response.get("Stacks") or []
        if not stacks:
            raise RemoteNotFoundError(f"Stack {stack_name} does not exist")
        if len(stacks) > 1:
            raise RemoteAmbiguousError(
                f"Expected one stack named {stack_name}, got {len(stacks)}"
            )
        return dict(stacks[0])

    def fetch_template(self, stack_name: str) -> str:
        """Get the original template body of a stack."""
        try:
            response = self.cloudformation.get_template(
                StackName=stack_name, TemplateStage="Original"
            )
        except ClientError as e:
            if _is_not_found(e):
                raise RemoteNotFoundError(f"Stack {stack_name} does not exist") from e
            raise RemoteUnavailableError(
                f"Unable to get template for {stack_name}: {_error_message(e)}"
            ) from e
        except BotoCoreError as e:
            raise RemoteUnavailableError(
                f"Unable to get template for {stack_name}: {e}"
            ) from e

        logger.debug(f"get_template::response: {response}")

        body = response.get("TemplateBody")
        if body is None or body == "":
            raise TemplateUnavailableError(
                f"No template body returned for stack {stack_name}"
            )

        # boto3 hands JSON templates back already parsed
        if not isinstance(body, str):
            body = json.dumps(body, indent=2)

        return body

    def fetch_parameters(self, stack_name: str) -> List[ParameterRecord]:
        """Get the current parameters of a stack."""
        stack = self._describe_single_stack(stack_name)
        records = [
            ParameterRecord.from_remote(parameter)
            for parameter in stack.get("Parameters", [])
        ]
        logger.debug(f"fetch_parameters::records: {records}")
        return records

    def submit_update(
        self,
        stack_name: str,
        template_body: str,
        parameters: List[ParameterRecord],
        allow_capabilities: bool = False,
    ) -> Dict[str, Any]:
        """
        Start a stack update.

        Args:
            stack_name: Name of the CloudFormation stack
            template_body: Template content as string
            parameters: Parameters to apply
            allow_capabilities: Grant every IAM related capability

        Returns:
            The update_stack response
        """
        params: Dict[str, Any] = {
            "StackName": stack_name,
            "TemplateBody": template_body,
            "Parameters": to_remote(parameters),
        }
        if allow_capabilities:
            params["Capabilities"] = list(ALL_CAPABILITIES)

        try:
            response = self.cloudformation.update_stack(**params)
        except ClientError as e:
            raise RemoteRejectedError(_error_message(e)) from e
        except BotoCoreError as e:
            raise RemoteUnavailableError(
                f"Unable to update stack {stack_name}: {e}"
            ) from e

        logger.debug(f"update_stack::response: {response}")
        return dict(response)

    def query_status(self, stack_name: str) -> str:
        """Get the current stack status."""
        stack = self._describe_single_stack(stack_name)
        status = stack.get("StackStatus")
        if not status:
            raise RemoteUnavailableError(f"No status returned for stack {stack_name}")
        return str(status)
