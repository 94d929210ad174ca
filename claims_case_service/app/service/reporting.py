# Date windows and dense monthly series for dashboards
import calendar
import datetime
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from claims_case_service.app.config import settings
from claims_case_service.app.models import CaseStatus, InsuranceType, utcnow
from claims_case_service.app.service.exceptions import ValidationError
from claims_case_service.infrastructure.database import case_store
from claims_case_service.infrastructure.database.errors import translate_storage_errors

logger = logging.getLogger(__name__)


def as_utc(value: datetime.datetime) -> datetime.datetime:
    # Naive timestamps from query strings are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value.astimezone(datetime.UTC)


def subtract_months(value: datetime.datetime, months: int) -> datetime.datetime:
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def resolve_date_range(
    start: Optional[datetime.datetime],
    end: Optional[datetime.datetime],
    lookback_months: Optional[int] = None,
) -> Tuple[datetime.datetime, datetime.datetime]:
    """
    Missing end -> now; missing start -> `lookback_months` before end.
    An end given at exactly midnight covers that whole day.
    """
    lookback = settings.DEFAULT_LOOKBACK_MONTHS if lookback_months is None else lookback_months
    if end is None:
        range_end = utcnow()
    else:
        range_end = as_utc(end)
        if range_end.time() == datetime.time(0, 0):
            range_end = range_end + datetime.timedelta(days=1) - datetime.timedelta(microseconds=1)
    range_start = as_utc(start) if start is not None else subtract_months(range_end, lookback)
    if range_start > range_end:
        raise ValidationError("startDate must not be after endDate", fields={"startDate": start, "endDate": end})
    return range_start, range_end


def month_keys(start: datetime.datetime, end: datetime.datetime) -> List[str]:
    """Every calendar month touched by [start, end], as YYYY-MM, oldest first."""
    keys = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        keys.append(f"{year}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return keys


def densify_monthly_counts(rows: Iterable[Dict[str, Any]], keys: List[str]) -> Dict[str, List[int]]:
    """Turns sparse (group, year, month, count) rows into one zero-filled series per group."""
    grouped: Dict[str, Dict[str, int]] = {}
    for row in rows:
        month_key = f"{row['year']}-{row['month']:02d}"
        grouped.setdefault(row["group"], {})[month_key] = row["count"]
    return {group: [counts.get(key, 0) for key in keys] for group, counts in grouped.items()}


async def monthly_counts_grouped(
    db: AsyncIOMotorDatabase,
    status: Optional[CaseStatus],
    group_by: InsuranceType,
    start: Optional[datetime.datetime] = None,
    end: Optional[datetime.datetime] = None,
) -> Dict[str, List[int]]:
    range_start, range_end = resolve_date_range(start, end)
    with translate_storage_errors("monthly case counts"):
        rows = await case_store.aggregate_monthly_counts(db, status, group_by, range_start, range_end)
    keys = month_keys(range_start, range_end)
    series = densify_monthly_counts(rows, keys)
    logger.info(f"Monthly counts for status={status} group_by={group_by}: {len(series)} groups over {len(keys)} months.")
    return series


async def closed_case_counts_by_user(
    db: AsyncIOMotorDatabase,
    start: Optional[datetime.datetime] = None,
    end: Optional[datetime.datetime] = None,
) -> List[Dict[str, Any]]:
    range_start, range_end = resolve_date_range(start, end)
    with translate_storage_errors("closed case counts"):
        return await case_store.closed_case_counts_by_user(db, range_start, range_end)
