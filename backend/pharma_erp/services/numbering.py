"""System-generated document numbers: PREFIX-YYYYMMDD-NNNN."""
from __future__ import annotations

import random
from datetime import date
from typing import Optional


def generate_document_no(prefix: str, issue_date: Optional[str] = None, rng=random) -> str:
    """
    e.g. generate_document_no("PI", "2024-01-15") -> "PI-20240115-4821".

    The suffix is random (1000-9999); uniqueness is enforced by the table.
    """
    ymd = (issue_date or date.today().isoformat()).replace("-", "")
    suffix = rng.randint(1000, 9999)
    return f"{prefix}-{ymd}-{suffix}"
