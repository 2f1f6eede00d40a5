"""
Counts behind the dashboard and admin statistics

civicapp/services/stats.py

"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Type
from civicapp.models.base import ComplaintStatus
from civicapp.models.user import ComplaintStats
from civicapp.services import repository
from civicapp.services.repository import DocumentRepository


async def count_by(
    repo: DocumentRepository,
    field: str,
    values: Type[Enum],
    query: Optional[Dict[str, Any]] = None,
) -> Dict[str, int]:
    """Document count for every value of an enum field, zeros included"""
    counts = {}
    for value in values:
        counts[value.value] = await repo.count({**(query or {}), field: value.value})
    return counts


async def complaint_stats(submitted_by: Optional[str] = None) -> ComplaintStats:
    query = {"submitted_by": submitted_by} if submitted_by else {}
    by_status = await count_by(repository.complaints, "status", ComplaintStatus, query)
    return ComplaintStats(
        total=sum(by_status.values()),
        submitted=by_status[ComplaintStatus.SUBMITTED.value],
        in_progress=by_status[ComplaintStatus.IN_PROGRESS.value],
        resolved=by_status[ComplaintStatus.RESOLVED.value],
        rejected=by_status[ComplaintStatus.REJECTED.value],
    )


def start_of_month(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
