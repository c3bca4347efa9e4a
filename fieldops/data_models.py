# fieldops/data_models.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar, Union


logger = logging.getLogger(__name__)


class RecordStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CollectionType(str, Enum):
    COLLECTION = "collection"
    ORDER = "order"


class HolidayType(str, Enum):
    NATIONAL = "national"
    RELIGIOUS = "religious"
    CUSTOM = "custom"


class CriterionCategory(str, Enum):
    PLANNING = "PLANNING"
    PERSONAL_TRAIT = "PERSONAL TRAIT"
    KNOWLEDGE = "KNOWLEDGE"
    SELLING_SKILLS = "SELLING SKILLS"


RecordId = Union[int, str]


def _to_int(value: Any, default: int = 0) -> int:
    """Приводит значение из хранилища к int, мусор превращается в default."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _record_id(value: Any) -> RecordId:
    # числовые id (как их пишет UI) остаются числами
    if value is None:
        return ""
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return value
    return str(value)


# Поля визита: имя атрибута -> ключ в хранилище (camelCase, как пишет UI)
VISIT_FIELD_KEYS: Dict[str, str] = {
    "id": "id",
    "doctor_name": "doctorName",
    "clinic_name": "clinicName",
    "product1": "product1",
    "product2": "product2",
    "product3": "product3",
    "samples1": "samples1",
    "samples2": "samples2",
    "samples3": "samples3",
    "visit_date": "visitDate",
    "visit_time": "visitTime",
    "country": "country",
    "area": "area",
    "city": "city",
    "address": "address",
    "brand": "brand",
    "classification": "classification",
    "specialty": "specialty",
}

_VISIT_INT_FIELDS = ("samples1", "samples2", "samples3")


@dataclass
class Visit:
    """
    Визит медицинского представителя к врачу.

    Дата хранится строкой ISO `yyyy-MM-dd`, время — строкой `HH:MM`.
    Количество образцов неотрицательное.
    """
    id: RecordId
    doctor_name: str = ""
    clinic_name: str = ""
    product1: str = ""
    product2: str = ""
    product3: str = ""
    samples1: int = 0
    samples2: int = 0
    samples3: int = 0
    visit_date: str = ""
    visit_time: str = ""
    country: str = ""
    area: str = ""
    city: str = ""
    address: str = ""
    brand: str = ""
    classification: str = ""
    specialty: str = ""

    def products(self) -> List[tuple[str, int]]:
        """Пары (продукт, количество образцов) по трём слотам."""
        return [
            (self.product1, self.samples1),
            (self.product2, self.samples2),
            (self.product3, self.samples3),
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in VISIT_FIELD_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Visit":
        kwargs: Dict[str, Any] = {}
        for attr, key in VISIT_FIELD_KEYS.items():
            value = data.get(key)
            if attr == "id":
                kwargs[attr] = _record_id(value)
            elif attr in _VISIT_INT_FIELDS:
                kwargs[attr] = max(0, _to_int(value))
            else:
                kwargs[attr] = _str(value)
        return cls(**kwargs)


@dataclass
class CollectionRecord:
    """
    Запись сборщика в аптеке: либо оплата (collection), либо заказ (order).

    Для заказов group_id = "<pharmacy>-<date>", это только ключ группировки.
    """
    id: RecordId
    type: CollectionType
    date: str
    pharmacy: str
    status: RecordStatus = RecordStatus.PENDING
    amount: Optional[float] = None
    receipt_number: Optional[str] = None
    medicine: Optional[str] = None
    quantity: Optional[int] = None
    group_id: Optional[str] = None

    @property
    def is_order(self) -> bool:
        return self.type == CollectionType.ORDER

    @staticmethod
    def make_group_id(pharmacy: str, date: str) -> str:
        return f"{pharmacy}-{date}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "date": self.date,
            "pharmacy": self.pharmacy,
            "status": self.status.value,
        }
        optional = {
            "amount": self.amount,
            "receiptNumber": self.receipt_number,
            "medicine": self.medicine,
            "quantity": self.quantity,
            "groupId": self.group_id,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollectionRecord":
        record_type = CollectionType(data.get("type", CollectionType.COLLECTION.value))
        pharmacy = _str(data.get("pharmacy"))
        date = _str(data.get("date"))
        quantity = data.get("quantity")
        group_id = data.get("groupId")
        if record_type == CollectionType.ORDER and not group_id:
            group_id = cls.make_group_id(pharmacy, date)
        receipt_number = data.get("receiptNumber")
        medicine = data.get("medicine")
        return cls(
            id=data["id"],
            type=record_type,
            date=date,
            pharmacy=pharmacy,
            status=RecordStatus(data.get("status", RecordStatus.PENDING.value)),
            amount=_to_float(data.get("amount")),
            receipt_number=None if receipt_number is None else str(receipt_number),
            medicine=None if medicine is None else str(medicine),
            quantity=None if quantity is None else _to_int(quantity),
            group_id=group_id,
        )


@dataclass
class Order:
    """Строка очереди исполнения заказов (отдельный список "orders")."""
    id: RecordId
    date: str
    pharmacy: str
    medicine: Optional[str]
    quantity: Optional[int]
    status: RecordStatus = RecordStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "pharmacy": self.pharmacy,
            "medicine": self.medicine,
            "quantity": self.quantity,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        quantity = data.get("quantity")
        return cls(
            id=data["id"],
            date=_str(data.get("date")),
            pharmacy=_str(data.get("pharmacy")),
            medicine=data.get("medicine"),
            quantity=None if quantity is None else _to_int(quantity),
            status=RecordStatus(data.get("status", RecordStatus.PENDING.value)),
        )


@dataclass
class Holiday:
    id: str
    date: str
    name: str
    type: HolidayType = HolidayType.CUSTOM
    recurring: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "name": self.name,
            "type": self.type.value,
            "recurring": self.recurring,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Holiday":
        return cls(
            id=_str(data.get("id")),
            date=_str(data.get("date")),
            name=_str(data.get("name")),
            type=HolidayType(data.get("type", HolidayType.CUSTOM.value)),
            recurring=bool(data.get("recurring", False)),
        )


@dataclass
class WorkingHours:
    start: str = "08:00"
    end: str = "17:00"


@dataclass
class WorkSettings:
    """
    Настройки рабочего календаря.
    weekly_holidays — индексы дней недели, 0 = воскресенье, 6 = суббота.
    """
    weekly_holidays: List[int] = field(default_factory=lambda: [5])
    working_hours: WorkingHours = field(default_factory=WorkingHours)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weeklyHolidays": list(self.weekly_holidays),
            "workingHours": {"start": self.working_hours.start, "end": self.working_hours.end},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkSettings":
        hours = data.get("workingHours") or {}
        return cls(
            weekly_holidays=[_to_int(d) for d in data.get("weeklyHolidays", [5])],
            working_hours=WorkingHours(
                start=_str(hours.get("start", "08:00")),
                end=_str(hours.get("end", "17:00")),
            ),
        )


@dataclass(frozen=True)
class EvaluationCriterion:
    id: str
    title: str
    category: CriterionCategory
    max_score: int


@dataclass
class ScoreBreakdown:
    """Суммы оценок по категориям, total равен сумме четырёх категорий."""
    planning: float = 0.0
    personal_traits: float = 0.0
    knowledge: float = 0.0
    selling_skills: float = 0.0
    total: float = 0.0


@dataclass
class EvaluationResult:
    breakdown: ScoreBreakdown
    tier: str
    color_hint: str
    recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MetricPoint:
    """Одна точка агрегата: ключ группировки и значение метрики."""
    name: str
    value: float


T = TypeVar("T")


def parse_rows(
    rows: Iterable[Dict[str, Any]],
    parser: Callable[[Dict[str, Any]], T],
) -> List[Tuple[Dict[str, Any], Optional[T]]]:
    """
    Разбирает сохранённые строки по одной.

    Битая строка (нет id, неизвестный статус/тип) не валит весь список:
    в лог пишется предупреждение, вместо записи возвращается None.
    Сырой dict остаётся рядом, чтобы при перезаписи списка его не потерять.
    """
    parsed: List[Tuple[Dict[str, Any], Optional[T]]] = []
    for row in rows:
        try:
            parsed.append((row, parser(row)))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed record %r: %r", row, exc)
            parsed.append((row, None))
    return parsed


def parse_records(rows: Iterable[Dict[str, Any]], parser: Callable[[Dict[str, Any]], T]) -> List[T]:
    """Только успешно разобранные записи, в исходном порядке."""
    return [record for _row, record in parse_rows(rows, parser) if record is not None]
