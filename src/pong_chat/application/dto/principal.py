from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: str

    def is_user(self, user_id: str) -> bool:
        return self.user_id == str(user_id)
