"""Read-only attendance summaries for history views.

Not part of the draft/reconcile loop. Cancelled sessions never happened, so
they are tallied separately and left out of every total and percentage.
"""

from collections import Counter
from datetime import date
from typing import Dict, Iterable, List

from services.attendance_service.models import AttendanceStatus
from services.attendance_service.schemas import (
    AttendanceStatistics,
    BatchHistoryDay,
    BatchHistoryDaySummary,
    MonthlyBreakdown,
    StudentHistoryRecord,
)


def _percent(part: int, whole: int) -> int:
    # Half-up rounding, matching how the backend reports percentages
    return int(part * 100 / whole + 0.5) if whole else 0


def summarize_student_history(
    records: Iterable[StudentHistoryRecord],
) -> AttendanceStatistics:
    records = list(records)
    counts = Counter(record.status for record in records)
    cancelled = counts[AttendanceStatus.CANCELLED]
    total = len(records) - cancelled

    by_month: Dict[str, Counter] = {}
    for record in records:
        by_month.setdefault(record.date.strftime("%Y-%m"), Counter())[record.status] += 1

    breakdown = []
    for month in sorted(by_month):
        month_counts = by_month[month]
        month_total = sum(month_counts.values()) - month_counts[AttendanceStatus.CANCELLED]
        breakdown.append(
            MonthlyBreakdown(
                month=month,
                present=month_counts[AttendanceStatus.PRESENT],
                absent=month_counts[AttendanceStatus.ABSENT],
                late=month_counts[AttendanceStatus.LATE],
                excused=month_counts[AttendanceStatus.EXCUSED],
                cancelled=month_counts[AttendanceStatus.CANCELLED],
                total=month_total,
                present_percentage=_percent(
                    month_counts[AttendanceStatus.PRESENT], month_total
                ),
            )
        )

    return AttendanceStatistics(
        present_percentage=_percent(counts[AttendanceStatus.PRESENT], total),
        absent_percentage=_percent(counts[AttendanceStatus.ABSENT], total),
        late_percentage=_percent(counts[AttendanceStatus.LATE], total),
        excused_percentage=_percent(counts[AttendanceStatus.EXCUSED], total),
        total_classes=total,
        cancelled=cancelled,
        monthly_breakdown=breakdown,
    )


def tally_batch_history(
    days: Iterable[BatchHistoryDay],
) -> Dict[date, Dict[AttendanceStatus, int]]:
    """Per-date status counts, every status present (zero when unused)."""
    tallies = {}
    for day in sorted(days, key=lambda d: d.date):
        counts = Counter(record.status for record in day.records)
        tallies[day.date] = {status: counts[status] for status in AttendanceStatus}
    return tallies


def sort_newest_first(records: Iterable[StudentHistoryRecord]) -> List[StudentHistoryRecord]:
    return sorted(records, key=lambda r: r.date, reverse=True)


def summarize_batch_history(days: Iterable[BatchHistoryDay]) -> List[BatchHistoryDaySummary]:
    days = sorted(days, key=lambda d: d.date)
    tallies = tally_batch_history(days)
    return [
        BatchHistoryDaySummary(
            date=day.date,
            present=tallies[day.date][AttendanceStatus.PRESENT],
            absent=tallies[day.date][AttendanceStatus.ABSENT],
            late=tallies[day.date][AttendanceStatus.LATE],
            excused=tallies[day.date][AttendanceStatus.EXCUSED],
            cancelled=tallies[day.date][AttendanceStatus.CANCELLED],
            records=day.records,
        )
        for day in days
    ]
