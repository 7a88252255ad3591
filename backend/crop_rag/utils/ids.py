"""ID helpers."""

from __future__ import annotations

import uuid


def new_id(length: int = 21) -> str:
    """Generate a random hex id of ``length`` characters."""
    return uuid.uuid4().hex[:length]
