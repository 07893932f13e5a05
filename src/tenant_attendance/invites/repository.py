from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from .model import InviteCode


class InviteRepository(Protocol):
    def get(self, invite_id: str) -> Optional[InviteCode]:
        raise NotImplementedError

    def find_by_code(self, code: str) -> Optional[InviteCode]:
        raise NotImplementedError

    def create(self, data: dict) -> str:
        raise NotImplementedError

    def list_for_tenant(self, tenant_id: str, *, limit: int) -> Sequence[InviteCode]:
        raise NotImplementedError

    def set_active(self, invite_id: str, *, active: bool) -> None:
        raise NotImplementedError

    def consume(self, invite_id: str, *, check: Callable[[Optional[InviteCode]], None]) -> InviteCode:
        """Atomically run ``check`` on the current invite and count one use."""

        raise NotImplementedError
