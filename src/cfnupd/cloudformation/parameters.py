"""
Stack parameter records and their on-disk encoding.

The parameters file is meant to be edited by hand between fetch and submit,
so decoding fills in defaults for everything except the parameter key.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

import jsonschema

from ..errors import MalformedParameterDataError, MissingParameterKeyError

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

PARAMETERS_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "parameter_key": {"type": "string"},
            "parameter_value": {"type": "string"},
            "use_previous_value": {"type": "boolean"},
            "resolved_value": {"type": "string"},
        },
    },
}


@dataclass
class ParameterRecord:
    """One configuration value attached to a stack."""

    key: str
    value: str = NOT_AVAILABLE
    use_previous_value: bool = False
    resolved_value: str = NOT_AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the parameters file layout."""
        return {
            "parameter_key": self.key,
            "parameter_value": self.value,
            "use_previous_value": self.use_previous_value,
            "resolved_value": self.resolved_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParameterRecord":
        """Create a record from the parameters file layout."""
        key = data.get("parameter_key")
        if not key:
            raise MissingParameterKeyError(
                f"Parameter entry has no parameter_key: {data}"
            )
        return cls(
            key=key,
            value=data.get("parameter_value", NOT_AVAILABLE),
            use_previous_value=data.get("use_previous_value", False),
            resolved_value=data.get("resolved_value", NOT_AVAILABLE),
        )

    @classmethod
    def from_remote(cls, parameter: Dict[str, Any]) -> "ParameterRecord":
        """Create a record from a describe_stacks parameter entry."""
        return cls(
            key=parameter.get("ParameterKey", NOT_AVAILABLE),
            value=parameter.get("ParameterValue", NOT_AVAILABLE),
            use_previous_value=parameter.get("UsePreviousValue", False),
            resolved_value=parameter.get("ResolvedValue", NOT_AVAILABLE),
        )

    def to_remote(self) -> Dict[str, Any]:
        """Convert to an update_stack parameter entry."""
        parameter: Dict[str, Any] = {
            "ParameterKey": self.key,
            "UsePreviousValue": self.use_previous_value,
        }
        # CloudFormation rejects a value alongside UsePreviousValue=True
        if not self.use_previous_value:
            parameter["ParameterValue"] = self.value
        return parameter


def encode(records: Iterable[ParameterRecord]) -> bytes:
    """Serialize records as pretty printed JSON."""
    payload = [record.to_dict() for record in records]
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def decode(data: bytes) -> List[ParameterRecord]:
    """
    Parse a parameters file.

    Raises:
        MalformedParameterDataError: payload is not a list of parameter objects
        MissingParameterKeyError: an entry has no parameter_key
    """
    try:
        payload = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedParameterDataError(f"Parameters are not valid JSON: {e}") from e

    try:
        jsonschema.validate(payload, PARAMETERS_SCHEMA)
    except jsonschema.ValidationError as e:
        location = " -> ".join(str(x) for x in e.absolute_path) or "root"
        raise MalformedParameterDataError(
            f"Invalid parameters at {location}: {e.message}"
        ) from e

    records = [ParameterRecord.from_dict(entry) for entry in payload]

    seen = set()
    for record in records:
        if record.key in seen:
            raise MalformedParameterDataError(
                f"Duplicate parameter_key: {record.key}"
            )
        seen.add(record.key)

    logger.debug(f"decode::parameters: {records}")
    return records


def to_remote(records: Iterable[ParameterRecord]) -> List[Dict[str, Any]]:
    """Map records 1:1 to update_stack parameters."""
    return [record.to_remote() for record in records]
