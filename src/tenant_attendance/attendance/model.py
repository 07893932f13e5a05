from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class BreakRecord:
    break_id: str
    attendance_id: str
    user_id: str
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    duration_minutes: int = 0

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one clock-in/clock-out at a work site."""

    record_id: str
    tenant_id: str
    user_id: str
    user_name: str
    date: str
    site_name: str
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    notes: str = ""
    breaks: tuple[BreakRecord, ...] = ()

    @property
    def is_open(self) -> bool:
        return self.end_time is None
