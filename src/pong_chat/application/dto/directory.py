from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DirectoryUser:
    """A user as known to the user service."""

    id: str
    display_name: str
