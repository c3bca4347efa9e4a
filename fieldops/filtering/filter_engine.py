# fieldops/filtering/filter_engine.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from fieldops.data_models import Visit
from fieldops.filtering.filter_state import FILTER_FIELDS, DateRange, FilterState
from fieldops.reference.reference_data import ProductOptions, ReferenceData, get_reference_data


@dataclass(frozen=True)
class DependentOptions:
    """Варианты для зависимых выпадающих списков."""
    areas: List[str]
    cities: List[str]
    available_products: ProductOptions


def unique_values(records: Iterable[Any], attr: str) -> List[str]:
    """Уникальные значения атрибута в порядке первого появления."""
    seen: dict = {}
    for record in records:
        seen.setdefault(getattr(record, attr), None)
    return list(seen)


def distinct_products(records: Sequence[Visit]) -> ProductOptions:
    """Все встречающиеся в записях продукты по трём слотам (пустые слоты не считаются)."""
    return ProductOptions(
        *(
            tuple(p for p in unique_values(records, f"product{slot}") if p)
            for slot in (1, 2, 3)
        )
    )


def compute_dependent_options(
    filter_state: FilterState,
    records: Sequence[Visit],
    reference: Optional[ReferenceData] = None,
) -> DependentOptions:
    """
    Считает зависимые списки:
    - регионы выбранной страны (пусто, если страна не выбрана);
    - города пары (страна, регион);
    - продукты выбранного врача, а без врача все продукты из записей.

    Врач без карточки в справочнике даёт пустые списки продуктов.
    """
    reference = reference or get_reference_data()

    if filter_state.doctor_name:
        products = reference.doctor_products(filter_state.doctor_name) or ProductOptions()
    else:
        products = distinct_products(records)

    return DependentOptions(
        areas=reference.areas(filter_state.country),
        cities=reference.cities(filter_state.country, filter_state.area),
        available_products=products,
    )


def parse_iso_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


T = TypeVar("T")


def parse_month(month: str) -> Tuple[int, int]:
    """`yyyy-MM` -> (год, месяц). Некорректная строка даёт ValueError."""
    year, month_num = (int(part) for part in month.split("-"))
    if not 1 <= month_num <= 12:
        raise ValueError(f"Month must be 01..12, got '{month}'")
    return year, month_num


def select_month(items: Iterable[T], month: str, date_of: Callable[[T], str]) -> List[T]:
    """Элементы, дата которых (через date_of) попадает в месяц `yyyy-MM`."""
    year, month_num = parse_month(month)
    result = []
    for item in items:
        current = parse_iso_date(date_of(item))
        if current is not None and (current.year, current.month) == (year, month_num):
            result.append(item)
    return result


def in_date_range(value: str, date_range: DateRange) -> bool:
    """
    Попадание даты в закрытый интервал [start, end].
    Если хотя бы одна граница пустая, ограничения нет.
    Нечитаемая дата записи при активном интервале не проходит.
    """
    if not date_range.is_active:
        return True
    start = parse_iso_date(date_range.start)
    end = parse_iso_date(date_range.end)
    current = parse_iso_date(value)
    if start is None or end is None or current is None:
        return False
    return start <= current <= end


def matches(visit: Visit, filter_state: FilterState) -> bool:
    for name in FILTER_FIELDS:
        expected = getattr(filter_state, name)
        if expected and getattr(visit, name) != expected:
            return False
    return in_date_range(visit.visit_date, filter_state.date_range)


def filter_records(records: Sequence[Visit], filter_state: FilterState) -> List[Visit]:
    """
    Оставляет визиты, у которых каждое непустое поле фильтра совпадает точно
    (AND по всем полям) и дата попадает в интервал. Порядок входа сохраняется.
    """
    return [visit for visit in records if matches(visit, filter_state)]
