"""Outcome of a validation pass: a boolean plus the messages explaining it."""

from dataclasses import dataclass, field
from typing import Union


@dataclass
class ValidationResult:
    """
    Accumulates a pass/fail outcome and human readable messages.

    Attributes:
        is_valid: Overall outcome, as supplied by the caller
        messages: Ordered messages describing each violation
    """

    is_valid: bool = False
    messages: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        initial, self.messages = self.messages, []
        self.add_message(initial)

    def add_message(self, message: Union[str, list[str]]) -> None:
        """Append a message, or merge a list of messages in order."""
        if isinstance(message, (list, tuple)):
            self.messages.extend(message)
        else:
            self.messages.append(message)

    def fail(self, message: Union[str, list[str]]) -> None:
        """Mark the result as failed and record why."""
        self.is_valid = False
        self.add_message(message)

    def combine(self, other: "ValidationResult") -> "ValidationResult":
        """AND the outcomes and concatenate the messages into a new result."""
        return ValidationResult(
            self.is_valid and other.is_valid, self.messages + other.messages
        )

    __and__ = combine

    def __bool__(self) -> bool:
        return self.is_valid
