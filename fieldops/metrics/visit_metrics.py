# fieldops/metrics/visit_metrics.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Sequence

from fieldops.data_models import MetricPoint, Visit
from fieldops.filtering.filter_engine import filter_records
from fieldops.filtering.filter_state import FilterState


@dataclass
class DashboardSummary:
    total_visits: int = 0
    total_samples: int = 0
    doctor_count: int = 0


@dataclass
class DashboardMetrics:
    """
    Все представления дашборда по отфильтрованному набору визитов.
    Каждый список содержит пары (ключ, значение), готовые для таблицы или графика.
    """
    by_doctor: List[MetricPoint] = field(default_factory=list)
    by_country: List[MetricPoint] = field(default_factory=list)
    by_classification: List[MetricPoint] = field(default_factory=list)
    product_usage: List[MetricPoint] = field(default_factory=list)
    over_time: List[MetricPoint] = field(default_factory=list)
    summary: DashboardSummary = field(default_factory=DashboardSummary)


def sorted_desc(totals: Mapping[str, float]) -> List[MetricPoint]:
    """
    По убыванию значения. sorted стабилен и с reverse=True, поэтому при
    равных значениях сохраняется порядок первого появления ключа в dict.
    """
    points = [MetricPoint(name, value) for name, value in totals.items()]
    return sorted(points, key=lambda p: p.value, reverse=True)


def count_by(records: Iterable[Visit], key: Callable[[Visit], str]) -> List[MetricPoint]:
    counts: Dict[str, int] = {}
    for record in records:
        k = key(record)
        counts[k] = counts.get(k, 0) + 1
    return sorted_desc(counts)


def visits_by_doctor(visits: Sequence[Visit]) -> List[MetricPoint]:
    return count_by(visits, lambda v: v.doctor_name)


def visits_by_country(visits: Sequence[Visit]) -> List[MetricPoint]:
    return count_by(visits, lambda v: v.country)


def visits_by_classification(visits: Sequence[Visit]) -> List[MetricPoint]:
    return count_by(visits, lambda v: v.classification)


def product_usage(visits: Sequence[Visit]) -> List[MetricPoint]:
    """Суммарное количество образцов по продукту через все три слота."""
    totals: Dict[str, int] = {}
    for visit in visits:
        for product, samples in visit.products():
            totals[product] = totals.get(product, 0) + samples
    return sorted_desc(totals)


def visits_over_time(visits: Sequence[Visit]) -> List[MetricPoint]:
    """
    Количество визитов по точной строке даты, по возрастанию даты.
    Строковое сравнение корректно только для ISO `yyyy-MM-dd`.
    """
    counts: Dict[str, int] = {}
    for visit in visits:
        counts[visit.visit_date] = counts.get(visit.visit_date, 0) + 1
    return sorted((MetricPoint(d, c) for d, c in counts.items()), key=lambda p: p.name)


def build_dashboard(visits: Sequence[Visit]) -> DashboardMetrics:
    """Пересчитывает все представления с нуля; результат зависит только от входа."""
    by_doctor = visits_by_doctor(visits)
    usage = product_usage(visits)
    return DashboardMetrics(
        by_doctor=by_doctor,
        by_country=visits_by_country(visits),
        by_classification=visits_by_classification(visits),
        product_usage=usage,
        over_time=visits_over_time(visits),
        summary=DashboardSummary(
            total_visits=len(visits),
            total_samples=int(sum(p.value for p in usage)),
            doctor_count=len(by_doctor),
        ),
    )


def dashboard_for(records: Sequence[Visit], filter_state: FilterState) -> DashboardMetrics:
    """Полный конвейер: фильтрация → агрегаты."""
    return build_dashboard(filter_records(records, filter_state))
