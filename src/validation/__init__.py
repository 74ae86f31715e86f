"""
Validation package for ingestion tasks.

Modules:
    result: ValidationResult accumulator shared by every validator
    parameters: ParameterValidator, field presence and shape checks
    consistency: ConsistencyValidator, slug checks against Media Manager
    parent_tree: Typed search over an asset's nested parent_tree
    task: TaskValidator, runs both validators and labels their messages
"""

from .consistency import ConsistencyValidator, has_data
from .parameters import ParameterValidator
from .parent_tree import ContainerType, ParentNode, has_parent_in_tree
from .result import ValidationResult
from .task import CONSISTENCY_CHECK_FAILED, PARAMETER_CHECK_FAILED, TaskValidator

__all__ = [
    "ConsistencyValidator",
    "ContainerType",
    "ParameterValidator",
    "ParentNode",
    "TaskValidator",
    "ValidationResult",
    "CONSISTENCY_CHECK_FAILED",
    "PARAMETER_CHECK_FAILED",
    "has_data",
    "has_parent_in_tree",
]
