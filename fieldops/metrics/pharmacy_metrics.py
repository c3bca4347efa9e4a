# fieldops/metrics/pharmacy_metrics.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from fieldops.data_models import CollectionRecord, CollectionType, MetricPoint, RecordStatus
from fieldops.filtering.filter_engine import in_date_range, select_month, unique_values
from fieldops.filtering.filter_state import DateRange


@dataclass(frozen=True)
class PharmacyFilter:
    date_range: DateRange = field(default_factory=DateRange)
    pharmacy: str = ""
    medicine: str = ""


@dataclass
class PharmacyPerformance:
    name: str
    collections: float = 0.0  # собранная сумма
    orders: int = 0  # заказанное количество


@dataclass
class PharmacyStats:
    total_collections: float = 0.0
    total_order_quantity: int = 0
    medicine_distribution: List[MetricPoint] = field(default_factory=list)
    pharmacy_performance: List[PharmacyPerformance] = field(default_factory=list)
    collection_trends: List[MetricPoint] = field(default_factory=list)


@dataclass
class MonthlyPharmacyReport:
    month: str
    pharmacies_visited: int = 0
    total_collections: float = 0.0
    medicine_quantities: List[MetricPoint] = field(default_factory=list)
    total_medicine_quantity: int = 0
    approved_collections: float = 0.0
    pending_collections: float = 0.0


def filter_pharmacy_records(
    records: Sequence[CollectionRecord],
    pharmacy_filter: PharmacyFilter,
) -> List[CollectionRecord]:
    """Те же правила, что и для визитов: точное совпадение полей, закрытый интервал дат."""
    result = []
    for record in records:
        if pharmacy_filter.pharmacy and record.pharmacy != pharmacy_filter.pharmacy:
            continue
        if pharmacy_filter.medicine and record.medicine != pharmacy_filter.medicine:
            continue
        if not in_date_range(record.date, pharmacy_filter.date_range):
            continue
        result.append(record)
    return result


def pharmacy_options(records: Sequence[CollectionRecord]) -> Tuple[List[str], List[str]]:
    """Аптеки и препараты, встречающиеся в записях (для выпадающих списков)."""
    pharmacies = unique_values(records, "pharmacy")
    medicines = unique_values([r for r in records if r.medicine], "medicine")
    return pharmacies, medicines


def _medicine_totals(records: Sequence[CollectionRecord]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for record in records:
        if record.type == CollectionType.ORDER and record.medicine and record.quantity:
            totals[record.medicine] = totals.get(record.medicine, 0) + record.quantity
    return totals


def _sum_amounts(records: Sequence[CollectionRecord], status: RecordStatus | None = None) -> float:
    return sum(
        record.amount or 0
        for record in records
        if record.type == CollectionType.COLLECTION and (status is None or record.status == status)
    )


def pharmacy_stats(records: Sequence[CollectionRecord]) -> PharmacyStats:
    """
    Сводка по аптечным записям (обычно уже отфильтрованным):
    - общая собранная сумма и общее заказанное количество;
    - распределение количества по препаратам;
    - суммы и количества по каждой аптеке;
    - динамика сборов по датам (по возрастанию даты).
    """
    performance: Dict[str, PharmacyPerformance] = {}
    trends: Dict[str, float] = {}

    for record in records:
        perf = performance.setdefault(record.pharmacy, PharmacyPerformance(name=record.pharmacy))
        if record.type == CollectionType.COLLECTION:
            perf.collections += record.amount or 0
            trends[record.date] = trends.get(record.date, 0) + (record.amount or 0)
        else:
            perf.orders += record.quantity or 0

    return PharmacyStats(
        total_collections=_sum_amounts(records),
        total_order_quantity=sum(
            record.quantity or 0 for record in records if record.type == CollectionType.ORDER
        ),
        medicine_distribution=[MetricPoint(name, qty) for name, qty in _medicine_totals(records).items()],
        pharmacy_performance=list(performance.values()),
        collection_trends=sorted((MetricPoint(d, a) for d, a in trends.items()), key=lambda p: p.name),
    )


def records_in_month(records: Sequence[CollectionRecord], month: str) -> List[CollectionRecord]:
    """Записи за месяц `yyyy-MM`."""
    return select_month(records, month, lambda record: record.date)


def monthly_pharmacy_report(records: Sequence[CollectionRecord], month: str) -> MonthlyPharmacyReport:
    period = records_in_month(records, month)
    medicine_totals = _medicine_totals(period)
    return MonthlyPharmacyReport(
        month=month,
        pharmacies_visited=len({record.pharmacy for record in period}),
        total_collections=_sum_amounts(period),
        medicine_quantities=[MetricPoint(name, qty) for name, qty in medicine_totals.items()],
        total_medicine_quantity=sum(medicine_totals.values()),
        approved_collections=_sum_amounts(period, RecordStatus.APPROVED),
        pending_collections=_sum_amounts(period, RecordStatus.PENDING),
    )
