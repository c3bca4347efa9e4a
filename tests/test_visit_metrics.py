# tests/test_visit_metrics.py
from fieldops.data_models import MetricPoint, Visit
from fieldops.filtering.filter_state import FilterState
from fieldops.metrics.visit_metrics import (
    build_dashboard,
    dashboard_for,
    product_usage,
    visits_by_classification,
    visits_by_country,
    visits_by_doctor,
    visits_over_time,
)


def _visit(visit_id, doctor="A", date="2024-01-01", **kwargs):
    return Visit(id=visit_id, doctor_name=doctor, visit_date=date, **kwargs)


def test_by_doctor_sorted_by_count():
    visits = [_visit("1", "A"), _visit("2", "A"), _visit("3", "B")]

    assert visits_by_doctor(visits) == [MetricPoint("A", 2), MetricPoint("B", 1)]


def test_by_doctor_ties_keep_first_seen_order():
    visits = [_visit("1", "A"), _visit("2", "B"), _visit("3", "B"), _visit("4", "A")]

    assert visits_by_doctor(visits) == [MetricPoint("A", 2), MetricPoint("B", 2)]


def test_by_country_and_classification():
    visits = [
        _visit("1", country="مصر", classification="Class B"),
        _visit("2", country="مصر", classification="Class A"),
        _visit("3", country="الإمارات العربية المتحدة", classification="Class A"),
    ]

    assert visits_by_country(visits) == [
        MetricPoint("مصر", 2),
        MetricPoint("الإمارات العربية المتحدة", 1),
    ]
    assert visits_by_classification(visits) == [MetricPoint("Class A", 2), MetricPoint("Class B", 1)]


def test_product_usage_accumulates_all_three_slots():
    visits = [
        _visit("1", product1="Panadol", samples1=3, product2="Nexium", samples2=4, product3="Concor", samples3=1),
        _visit("2", product1="Brufen", samples1=2, product2="Panadol", samples2=5, product3="Concor", samples3=2),
    ]

    assert product_usage(visits) == [
        MetricPoint("Panadol", 8),
        MetricPoint("Nexium", 4),
        MetricPoint("Concor", 3),
        MetricPoint("Brufen", 2),
    ]


def test_over_time_sorted_by_date_ascending():
    visits = [_visit("1", date="2024-03-02"), _visit("2", date="2024-01-15"), _visit("3", date="2024-03-02")]

    assert visits_over_time(visits) == [MetricPoint("2024-01-15", 1), MetricPoint("2024-03-02", 2)]


def test_build_dashboard_summary_and_determinism():
    visits = [
        _visit("1", "A", product1="Panadol", samples1=3, product2="Nexium", samples2=1, product3="Concor", samples3=1),
        _visit("2", "B", product1="Panadol", samples1=2, product2="Nexium", samples2=1, product3="Concor", samples3=1),
    ]

    first = build_dashboard(visits)
    second = build_dashboard(list(visits))

    assert first.summary.total_visits == 2
    assert first.summary.total_samples == 9
    assert first.summary.doctor_count == 2
    assert first == second


def test_dashboard_for_applies_filter_first():
    visits = [_visit("1", "A", country="مصر"), _visit("2", "B", country="مصر"), _visit("3", "A", country="")]

    dashboard = dashboard_for(visits, FilterState(country="مصر"))

    assert dashboard.summary.total_visits == 2
    assert dashboard.by_doctor == [MetricPoint("A", 1), MetricPoint("B", 1)]


def test_empty_input_gives_empty_views():
    dashboard = build_dashboard([])

    assert dashboard.by_doctor == []
    assert dashboard.product_usage == []
    assert dashboard.summary.total_samples == 0
