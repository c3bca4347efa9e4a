# fieldops/io/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class RecordStoreError(Exception):
    """Базовая ошибка хранилища записей."""


class RecordStoreUnavailableError(RecordStoreError):
    """Хранилище недоступно (ошибка БД, диска и т.п.)."""


class RecordKind(str, Enum):
    """Логические ключи хранилища. Значения совпадают с ключами, которые писал UI."""
    VISITS = "visits"
    COLLECTIONS = "collections"
    ORDERS = "orders"
    HOLIDAYS = "workCalendarHolidays"
    WORK_SETTINGS = "workCalendarSettings"


class KeyValueStore(ABC):
    """
    Абстракция плоского строкового хранилища ключ/значение.

    Ничего не знает про JSON и форму записей, работает только со строками.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Возвращает строку по ключу или None, если ключа нет."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_many(self, items: Mapping[str, str]) -> None:
        """
        Записывает несколько ключей одной операцией.
        Реализации должны применять либо все значения, либо ни одного.
        """
        raise NotImplementedError


class RecordStore(ABC):
    """
    Репозиторий плоских списков записей, который передаётся в сервисы явно.

    Движки (фильтрация, метрики, оценка) не ходят в хранилище сами:
    они получают списки записей параметрами.
    """

    @abstractmethod
    def load_records(self, kind: RecordKind) -> List[Dict[str, Any]]:
        """
        Загружает список записей.
        Отсутствующий ключ или битый JSON — пустой список, не ошибка.
        """
        raise NotImplementedError

    @abstractmethod
    def save_records(self, kind: RecordKind, records: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    @abstractmethod
    def save_many(self, batches: Mapping[RecordKind, List[Dict[str, Any]]]) -> None:
        """Сохраняет несколько списков атомарно (все или ни один)."""
        raise NotImplementedError

    @abstractmethod
    def load_document(self, kind: RecordKind, default: Any) -> Any:
        """Загружает произвольный JSON-документ; при отсутствии/ошибке возвращает default."""
        raise NotImplementedError

    @abstractmethod
    def save_document(self, kind: RecordKind, value: Any) -> None:
        raise NotImplementedError
