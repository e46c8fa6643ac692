"""Shared error types for consensus-level values."""

from __future__ import annotations

from typing import Any


class NonStandardValue(ValueError):
    """A value accepted by consensus rules but refused as non-standard."""

    def __init__(self, value: Any, matter: str) -> None:
        self.value = value
        self.matter = matter
        super().__init__(
            f"the provided value {value} for {matter} is non-standard; while it is "
            "accepted by the bitcoin consensus rules, the software prohibits from "
            "using it."
        )

    @classmethod
    def with_value(cls, value: Any, matter: str) -> NonStandardValue:
        """Construct the error for ``value`` concerning ``matter``."""
        return cls(value, matter)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NonStandardValue):
            return NotImplemented
        return (self.value, self.matter) == (other.value, other.matter)

    def __hash__(self) -> int:
        return hash((self.value, self.matter))

    def __repr__(self) -> str:
        return f"NonStandardValue(value={self.value!r}, matter={self.matter!r})"