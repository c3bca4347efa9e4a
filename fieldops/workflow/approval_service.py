# fieldops/workflow/approval_service.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from fieldops.data_models import (
    CollectionRecord,
    CollectionType,
    Order,
    RecordId,
    RecordStatus,
    parse_records,
    parse_rows,
)
from fieldops.io.base import RecordKind, RecordStore


logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    """Базовая ошибка процесса согласования."""


class RecordNotFoundError(WorkflowError):
    """Запись или группа заказов не найдена."""


class InvalidTransitionError(WorkflowError):
    """Недопустимый переход статуса (из терминального состояния или в pending)."""


TERMINAL_STATUSES = (RecordStatus.APPROVED, RecordStatus.REJECTED)


@dataclass
class OrderGroup:
    """Заказы одной аптеки за одну дату, согласуются целиком."""
    group_id: str
    pharmacy: str
    date: str
    orders: List[CollectionRecord] = field(default_factory=list)
    status: RecordStatus = RecordStatus.PENDING


def group_key(record: CollectionRecord) -> str:
    """Ключ группы: сохранённый groupId, иначе pharmacy-date."""
    return record.group_id or CollectionRecord.make_group_id(record.pharmacy, record.date)


def group_orders(records: Sequence[CollectionRecord]) -> List[OrderGroup]:
    """
    Группирует заказы по ключу группы в порядке первого появления.
    Статус группы берётся из её первой записи.
    """
    groups: Dict[str, OrderGroup] = {}
    for record in records:
        if record.type != CollectionType.ORDER:
            continue
        key = group_key(record)
        group = groups.get(key)
        if group is None:
            group = OrderGroup(group_id=key, pharmacy=record.pharmacy, date=record.date, status=record.status)
            groups[key] = group
        group.orders.append(record)
    return list(groups.values())


def financial_collections(records: Sequence[CollectionRecord]) -> List[CollectionRecord]:
    return [record for record in records if record.type == CollectionType.COLLECTION]


def _check_target(new_status: RecordStatus) -> RecordStatus:
    new_status = RecordStatus(new_status)
    if new_status not in TERMINAL_STATUSES:
        raise InvalidTransitionError(f"Target status must be approved or rejected, got '{new_status.value}'")
    return new_status


_Row = Tuple[Dict[str, Any], Optional[Any]]


def _dump_rows(rows: Sequence[_Row]) -> List[Dict[str, Any]]:
    # битые строки пишем обратно как были, на своих местах
    return [raw if record is None else record.to_dict() for raw, record in rows]


class ApprovalService:
    """
    Согласование записей сборщика: pending → approved | rejected.

    Хранилище — единственный источник правды: каждый вызов читает
    полный список, меняет его в памяти и записывает обратно целиком.
    Строки, которые не удалось разобрать, пропускаются с предупреждением
    и сохраняются без изменений.
    """

    def __init__(self, store: RecordStore, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock

    # ---------- Чтение ----------

    def _collection_rows(self) -> List[_Row]:
        return parse_rows(self._store.load_records(RecordKind.COLLECTIONS), CollectionRecord.from_dict)

    def _order_rows(self) -> List[_Row]:
        return parse_rows(self._store.load_records(RecordKind.ORDERS), Order.from_dict)

    def load_collections(self) -> List[CollectionRecord]:
        return parse_records(self._store.load_records(RecordKind.COLLECTIONS), CollectionRecord.from_dict)

    def load_orders(self) -> List[Order]:
        return parse_records(self._store.load_records(RecordKind.ORDERS), Order.from_dict)

    def pending_orders(self) -> List[Order]:
        return [order for order in self.load_orders() if order.status == RecordStatus.PENDING]

    # ---------- Переходы ----------

    def set_status(self, record_id: RecordId, new_status: RecordStatus) -> CollectionRecord:
        """Меняет статус одной записи и сохраняет весь список."""
        new_status = _check_target(new_status)
        rows = self._collection_rows()

        target = next((r for _raw, r in rows if r is not None and r.id == record_id), None)
        if target is None:
            raise RecordNotFoundError(f"Collection record '{record_id}' not found")
        if target.status != RecordStatus.PENDING:
            raise InvalidTransitionError(
                f"Record '{record_id}' is already {target.status.value}"
            )

        target.status = new_status
        self._store.save_records(RecordKind.COLLECTIONS, _dump_rows(rows))
        logger.info("Collection record %s -> %s", record_id, new_status.value)
        return target

    def set_group_status(self, group_id: str, new_status: RecordStatus) -> List[Order]:
        """
        Меняет статус всех заказов группы.

        При одобрении каждая строка группы порождает новую запись в очереди
        "orders" со статусом pending. Обновление статусов и добавление заказов
        пишутся одной операцией save_many.

        Возвращает добавленные заказы (пустой список при отклонении).
        """
        new_status = _check_target(new_status)
        rows = self._collection_rows()

        members = [
            r for _raw, r in rows
            if r is not None and r.type == CollectionType.ORDER and group_key(r) == group_id
        ]
        if not members:
            raise RecordNotFoundError(f"Order group '{group_id}' not found")
        not_pending = [r for r in members if r.status != RecordStatus.PENDING]
        if not_pending:
            raise InvalidTransitionError(
                f"Order group '{group_id}' has {len(not_pending)} record(s) that are not pending"
            )

        for record in members:
            record.status = new_status

        batches = {RecordKind.COLLECTIONS: _dump_rows(rows)}
        new_orders: List[Order] = []
        if new_status == RecordStatus.APPROVED:
            orders = self._store.load_records(RecordKind.ORDERS)
            ids = self._fresh_ids(orders, len(members))
            new_orders = [
                Order(
                    id=order_id,
                    date=record.date,
                    pharmacy=record.pharmacy,
                    medicine=record.medicine,
                    quantity=record.quantity,
                    status=RecordStatus.PENDING,
                )
                for order_id, record in zip(ids, members)
            ]
            batches[RecordKind.ORDERS] = orders + [order.to_dict() for order in new_orders]

        self._store.save_many(batches)
        logger.info(
            "Order group '%s' -> %s (%s record(s), %s new order(s))",
            group_id,
            new_status.value,
            len(members),
            len(new_orders),
        )
        return new_orders

    def set_order_status(self, order_id: RecordId, new_status: RecordStatus) -> Order:
        """Переход статуса строки в очереди исполнения заказов."""
        new_status = _check_target(new_status)
        rows = self._order_rows()

        target = next((o for _raw, o in rows if o is not None and o.id == order_id), None)
        if target is None:
            raise RecordNotFoundError(f"Order '{order_id}' not found")
        if target.status != RecordStatus.PENDING:
            raise InvalidTransitionError(f"Order '{order_id}' is already {target.status.value}")

        target.status = new_status
        self._store.save_records(RecordKind.ORDERS, _dump_rows(rows))
        logger.info("Order %s -> %s", order_id, new_status.value)
        return target

    def _fresh_ids(self, existing: Sequence[dict], count: int) -> List[int]:
        """
        Идентификаторы на основе времени в миллисекундах, строго возрастающие
        и не пересекающиеся с уже существующими числовыми id.
        """
        next_id = int(self._clock() * 1000)
        numeric = [
            item.get("id") for item in existing
            if isinstance(item.get("id"), int) and not isinstance(item.get("id"), bool)
        ]
        if numeric:
            next_id = max(next_id, max(numeric) + 1)
        return list(range(next_id, next_id + count))
