import uuid
from datetime import datetime
from typing import Iterable


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def next_reference(prefix: str, when: datetime, existing: Iterable[str]) -> str:
    """
    Next PREFIX-YYYY-MM-NNN reference for the month of `when`.
    The sequence is per prefix and month.
    """
    stem = f"{prefix}-{when.year}-{when.month:02d}-"
    highest = 0
    for ref in existing:
        if not ref or not ref.startswith(stem):
            continue
        tail = ref[len(stem):]
        if tail.isdigit():
            highest = max(highest, int(tail))
    return f"{stem}{highest + 1:03d}"
