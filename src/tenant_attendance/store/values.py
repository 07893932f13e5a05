"""Write-time sentinels understood by every store backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class _ServerTimestamp:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Increment:
    amount: int = 1


@dataclass(frozen=True)
class ArrayUnion:
    values: tuple[Any, ...]

    def __init__(self, values):
        object.__setattr__(self, "values", tuple(values))
