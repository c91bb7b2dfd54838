"""Domain primitives that enforce validity at creation time."""

import re
from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Self
from uuid import UUID

TIME_FORMAT_REGEX = re.compile(r"^([0-1][0-9]|2[0-3]):(00|15|30|45)$")


@dataclass(frozen=True)
class TemplateId:
    """Unique identifier for a SessionTemplate."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class InstanceId:
    """Unique identifier for a SessionInstance."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ParticipantId:
    """Unique identifier for a SessionParticipant."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Non-negative integer representing capacity."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Capacity cannot be negative")


@dataclass(frozen=True)
class LocalTime:
    """Wall-clock time of day in HH:MM, on a 15 minute grid."""

    value: str

    def __post_init__(self) -> None:
        if not TIME_FORMAT_REGEX.match(self.value):
            raise ValueError("Time must be in HH:MM format with 15 minute intervals")

    def to_time(self) -> time:
        hours, minutes = self.value.split(":")
        return time(hour=int(hours), minute=int(minutes))

    def __lt__(self, other: "LocalTime") -> bool:
        return self.value < other.value

    def __le__(self, other: "LocalTime") -> bool:
        return self.value <= other.value

    def __str__(self) -> str:
        return self.value
