# fieldops/metrics/visit_report.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from fieldops.config import config
from fieldops.data_models import Visit
from fieldops.filtering.filter_engine import parse_month, select_month, unique_values
from fieldops.scheduling.work_calendar import WorkCalendar


@dataclass
class MonthlyVisitReport:
    """Месячный отчёт представителя по визитам к врачам."""
    month: str
    total_doctors: int
    expected_work_days: int
    actual_work_days: int
    daily_average: float
    target_daily_visits: int
    target_visits: int
    actual_visits: int
    class_a_visits: int
    class_b_visits: int
    doctors_without_visits: int
    missed_visits: int
    days_without_report: int
    visit_completion: float  # %
    doctor_coverage: float  # %


def visits_in_month(visits: Sequence[Visit], month: str) -> List[Visit]:
    return select_month(visits, month, lambda visit: visit.visit_date)


def monthly_visit_report(
    visits: Sequence[Visit],
    month: str,
    work_calendar: WorkCalendar,
    target_daily_visits: Optional[int] = None,
) -> MonthlyVisitReport:
    """
    Считает показатели месяца `yyyy-MM`.

    - плановые рабочие дни берутся из рабочего календаря;
    - фактические рабочие дни — число различных дат с визитами;
    - база врачей — все врачи, встречающиеся во всех визитах;
    - недовыполнение и дни без отчёта не уходят ниже нуля.
    """
    if target_daily_visits is None:
        target_daily_visits = config.report.target_daily_visits

    year, month_num = parse_month(month)
    period = visits_in_month(visits, month)

    all_doctors = unique_values(visits, "doctor_name")
    visited_doctors = set(unique_values(period, "doctor_name"))
    doctors_without_visits = sum(1 for doctor in all_doctors if doctor not in visited_doctors)

    expected_work_days = work_calendar.month_stats(year, month_num).work_days
    actual_work_days = len({visit.visit_date for visit in period})
    target_visits = expected_work_days * target_daily_visits

    return MonthlyVisitReport(
        month=month,
        total_doctors=len(all_doctors),
        expected_work_days=expected_work_days,
        actual_work_days=actual_work_days,
        daily_average=round(len(period) / actual_work_days, 1) if actual_work_days else 0.0,
        target_daily_visits=target_daily_visits,
        target_visits=target_visits,
        actual_visits=len(period),
        class_a_visits=sum(1 for visit in period if visit.classification == "Class A"),
        class_b_visits=sum(1 for visit in period if visit.classification == "Class B"),
        doctors_without_visits=doctors_without_visits,
        missed_visits=max(0, target_visits - len(period)),
        days_without_report=max(0, expected_work_days - actual_work_days),
        visit_completion=len(period) / target_visits * 100 if target_visits else 0.0,
        doctor_coverage=(
            (len(all_doctors) - doctors_without_visits) / len(all_doctors) * 100 if all_doctors else 0.0
        ),
    )
