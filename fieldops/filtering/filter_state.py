# fieldops/filtering/filter_state.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Union

from fieldops.data_models import Visit
from fieldops.reference.reference_data import ReferenceData, get_reference_data


logger = logging.getLogger(__name__)


# Поля фильтра в порядке формы; все строковые, "" = без ограничения
FILTER_FIELDS = (
    "doctor_name",
    "clinic_name",
    "product1",
    "product2",
    "product3",
    "country",
    "area",
    "city",
    "brand",
    "classification",
    "specialty",
)

# Поля без каскада: меняются только сами
SIMPLE_FIELDS = ("clinic_name", "brand", "classification", "specialty")

# Имена полей, как их присылает UI (camelCase), плюс собственные имена
FIELD_ALIASES: Dict[str, str] = {
    "doctorName": "doctor_name",
    "clinicName": "clinic_name",
    **{name: name for name in FILTER_FIELDS},
}


@dataclass(frozen=True)
class DateRange:
    """Закрытый интервал дат ISO; ограничение действует, только если заданы обе границы."""
    start: str = ""
    end: str = ""

    @property
    def is_active(self) -> bool:
        return bool(self.start and self.end)


@dataclass(frozen=True)
class FilterState:
    doctor_name: str = ""
    clinic_name: str = ""
    product1: str = ""
    product2: str = ""
    product3: str = ""
    country: str = ""
    area: str = ""
    city: str = ""
    brand: str = ""
    classification: str = ""
    specialty: str = ""
    date_range: DateRange = field(default_factory=DateRange)

    def active_fields(self) -> Dict[str, str]:
        """Непустые поля фильтра (без диапазона дат)."""
        return {name: getattr(self, name) for name in FILTER_FIELDS if getattr(self, name)}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        reverse = {v: k for k, v in FIELD_ALIASES.items() if k != v}
        for name in FILTER_FIELDS:
            data[reverse.get(name, name)] = getattr(self, name)
        data["dateRange"] = {"start": self.date_range.start, "end": self.date_range.end}
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FilterState":
        """Принимает и camelCase (как в UI), и snake_case ключи. Лишние ключи игнорируются."""
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = FIELD_ALIASES.get(key)
            if name is not None:
                kwargs[name] = "" if value is None else str(value)
        raw_range = data.get("dateRange") or data.get("date_range") or {}
        if isinstance(raw_range, DateRange):
            kwargs["date_range"] = raw_range
        else:
            kwargs["date_range"] = DateRange(
                start=str(raw_range.get("start") or ""),
                end=str(raw_range.get("end") or ""),
            )
        return cls(**kwargs)


# ---------- Варианты изменения фильтра ----------

@dataclass(frozen=True)
class SetDoctor:
    doctor_name: str


@dataclass(frozen=True)
class SetCountry:
    country: str


@dataclass(frozen=True)
class SetArea:
    area: str


@dataclass(frozen=True)
class SetCity:
    city: str


@dataclass(frozen=True)
class SetProduct:
    slot: int  # 1..3
    product: str


@dataclass(frozen=True)
class SetDateBound:
    bound: str  # "start" | "end"
    value: str


@dataclass(frozen=True)
class SetField:
    """Поля без зависимостей: clinic_name, brand, classification, specialty."""
    field_name: str
    value: str


@dataclass(frozen=True)
class ResetAll:
    """Полная замена фильтра (переход из таблицы/карточки визита)."""
    state: FilterState


FilterChange = Union[SetDoctor, SetCountry, SetArea, SetCity, SetProduct, SetDateBound, SetField, ResetAll]


def apply_filter_change(
    prev: FilterState,
    change: FilterChange,
    reference: Optional[ReferenceData] = None,
) -> FilterState:
    """
    Единый редьюсер фильтра.

    Каскады:
    - врач → сбрасываются product1..3;
    - страна → сбрасываются регион и город;
    - регион → сбрасывается город.

    Иерархия локаций и список продуктов врача проверяются здесь же:
    недопустимое значение не попадает в состояние (поле остаётся пустым),
    в лог пишется предупреждение.
    """
    reference = reference or get_reference_data()

    if isinstance(change, SetDoctor):
        return replace(prev, doctor_name=change.doctor_name, product1="", product2="", product3="")

    if isinstance(change, SetCountry):
        return replace(prev, country=change.country, area="", city="")

    if isinstance(change, SetArea):
        area = change.area
        country = prev.country
        if area and not country:
            country = reference.locate_area(area) or ""
        if area and area not in reference.areas(country):
            logger.warning("Area '%s' does not belong to country '%s', ignoring", area, country)
            area = ""
            country = prev.country
        return replace(prev, country=country, area=area, city="")

    if isinstance(change, SetCity):
        return _set_city(prev, change.city, reference)

    if isinstance(change, SetProduct):
        if change.slot not in (1, 2, 3):
            raise ValueError(f"Product slot must be 1, 2 or 3, got {change.slot}")
        product = change.product
        if product and not _product_allowed(prev.doctor_name, change.slot, product, reference):
            logger.warning(
                "Product '%s' is not assigned to doctor '%s' (slot %s), ignoring",
                product,
                prev.doctor_name,
                change.slot,
            )
            product = ""
        return replace(prev, **{f"product{change.slot}": product})

    if isinstance(change, SetDateBound):
        if change.bound not in ("start", "end"):
            raise ValueError(f"Date bound must be 'start' or 'end', got '{change.bound}'")
        return replace(prev, date_range=replace(prev.date_range, **{change.bound: change.value}))

    if isinstance(change, SetField):
        if change.field_name not in SIMPLE_FIELDS:
            raise ValueError(f"Field '{change.field_name}' is not a plain filter field")
        return replace(prev, **{change.field_name: change.value})

    if isinstance(change, ResetAll):
        return normalize_filter_state(change.state, reference)

    raise TypeError(f"Unsupported filter change: {change!r}")


def _set_city(prev: FilterState, city: str, reference: ReferenceData) -> FilterState:
    if not city:
        return replace(prev, city="")

    if city in reference.cities(prev.country, prev.area):
        return replace(prev, city=city)

    # Страна/регион не выбраны, достраиваем их по городу
    location = reference.locate_city(city)
    if location is not None:
        country, area = location
        if (not prev.country or prev.country == country) and (not prev.area or prev.area == area):
            return replace(prev, country=country, area=area, city=city)

    logger.warning(
        "City '%s' does not belong to '%s' / '%s', ignoring", city, prev.country, prev.area
    )
    return replace(prev, city="")


def _product_allowed(doctor_name: str, slot: int, product: str, reference: ReferenceData) -> bool:
    # Без выбранного врача (или для врача без карточки) ограничений нет
    if not doctor_name:
        return True
    products = reference.doctor_products(doctor_name)
    if products is None:
        return True
    return product in products.for_slot(slot)


def normalize_filter_state(state: FilterState, reference: Optional[ReferenceData] = None) -> FilterState:
    """
    Приводит произвольное состояние фильтра к согласованному:
    - город достраивает страну и регион, регион — страну;
    - регион не из страны и город не из региона сбрасываются;
    - продукты не из списков выбранного врача сбрасываются.
    """
    reference = reference or get_reference_data()
    country, area, city = state.country, state.area, state.city

    if city and not (country and area):
        location = reference.locate_city(city)
        if location is not None:
            country = country or location[0]
            area = area or location[1]
    if area and not country:
        country = reference.locate_area(area) or ""

    if area and area not in reference.areas(country):
        logger.warning("Dropping area '%s' not under country '%s'", area, country)
        area, city = "", ""
    if city and city not in reference.cities(country, area):
        logger.warning("Dropping city '%s' not under '%s' / '%s'", city, country, area)
        city = ""

    products = {}
    for slot in (1, 2, 3):
        product = getattr(state, f"product{slot}")
        if product and not _product_allowed(state.doctor_name, slot, product, reference):
            logger.warning("Dropping product '%s' not assigned to '%s'", product, state.doctor_name)
            product = ""
        products[f"product{slot}"] = product

    return replace(state, country=country, area=area, city=city, **products)


def change_from_field(name: str, value: Any) -> FilterChange:
    """
    Адаптер для строковых имён полей из формы.

    Поддерживает `date_start` / `date_end` и псевдо-поле `resetAll`,
    которое принимает FilterState, dict или JSON-строку.
    """
    if name == "resetAll":
        if isinstance(value, FilterState):
            return ResetAll(value)
        data = json.loads(value) if isinstance(value, str) else value
        return ResetAll(FilterState.from_dict(data))

    if name.startswith("date_"):
        return SetDateBound(bound=name.split("_", 1)[1], value=str(value or ""))

    field_name = FIELD_ALIASES.get(name)
    if field_name is None:
        raise ValueError(f"Unknown filter field: {name}")

    value = "" if value is None else str(value)
    if field_name == "doctor_name":
        return SetDoctor(value)
    if field_name == "country":
        return SetCountry(value)
    if field_name == "area":
        return SetArea(value)
    if field_name == "city":
        return SetCity(value)
    if field_name.startswith("product"):
        return SetProduct(slot=int(field_name[-1]), product=value)
    return SetField(field_name, value)


def apply_field_change(
    prev: FilterState,
    name: str,
    value: Any,
    reference: Optional[ReferenceData] = None,
) -> FilterState:
    return apply_filter_change(prev, change_from_field(name, value), reference)


def narrow_to_visit(visit: Visit, field_name: str) -> ResetAll:
    """
    Фильтр «только по этому значению» из карточки визита: все остальные поля
    очищаются. Для страны/региона/города подставляются связанные поля визита,
    чтобы не нарушить иерархию локаций.
    """
    name = FIELD_ALIASES.get(field_name)
    if name is None:
        raise ValueError(f"Unknown filter field: {field_name}")

    values: Dict[str, str] = {name: getattr(visit, name)}
    if name in ("country", "area", "city"):
        values.update(country=visit.country, area=visit.area, city=visit.city)
    return ResetAll(FilterState(**values))
