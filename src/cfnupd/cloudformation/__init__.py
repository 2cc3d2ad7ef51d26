"""
CloudFormation stack update utilities.
"""

from .artifacts import ArtifactSet, allocate_scratch, persist
from .parameters import ParameterRecord, decode, encode, to_remote
from .stack_manager import StackManager, StatusClass, classify_status
from .updater import StackUpdater, UpdateOptions, UpdateResult, UpdateState, parse_save_answer

__all__ = [
    "ArtifactSet",
    "ParameterRecord",
    "StackManager",
    "StackUpdater",
    "StatusClass",
    "UpdateOptions",
    "UpdateResult",
    "UpdateState",
    "allocate_scratch",
    "classify_status",
    "decode",
    "encode",
    "parse_save_answer",
    "persist",
    "to_remote",
]
