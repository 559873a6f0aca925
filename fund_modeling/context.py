"""
context.py — Explicit caller identity passed to service entry points.

Depends on: nothing
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CallerContext:
    """
    Who is calling, and what they may touch.

    Admins see and edit every record; everyone else only records they
    created (or funds listed in owned_fund_ids).
    """

    user_id: str
    is_admin: bool = False
    owned_fund_ids: frozenset[str] = field(default_factory=frozenset)

    def can_access(self, created_by: Optional[str], record_id: Optional[str] = None) -> bool:
        if self.is_admin:
            return True
        if created_by is not None and created_by == self.user_id:
            return True
        return record_id is not None and record_id in self.owned_fund_ids

    @classmethod
    def admin(cls, user_id: str = "admin") -> "CallerContext":
        return cls(user_id=user_id, is_admin=True)
