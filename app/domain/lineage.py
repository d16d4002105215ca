"""
app/domain/lineage.py

Data lineage entries linking entities to the files that produced them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class LineageStep:
    NORMALIZE_MERGE = "normalize_merge"


class LineageAction:
    CREATED = "created"
    MERGED = "merged"


@dataclass
class LineageRecord:
    entity_id: str
    source_file_id: str | None
    transformation_step: str
    transformation_details: dict[str, Any] = field(default_factory=dict)
    performed_by: str = "system"
    lineage_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    transformation_timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
