# fieldops/io/record_store.py
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from fieldops.io.base import KeyValueStore, RecordKind, RecordStore


logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """Хранилище в памяти процесса. Используется в тестах и для демо-прогонов."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def set_many(self, items: Mapping[str, str]) -> None:
        # dict.update не может упасть посередине для строковых значений
        self._data.update(items)


class JsonRecordStore(RecordStore):
    """
    RecordStore поверх строкового key-value хранилища.

    Делает:
    - сериализацию списков/документов в JSON (ensure_ascii=False, чтобы арабские
      названия оставались читаемыми в БД);
    - обработку битых значений: предупреждение в лог и откат к пустому списку
      или к переданному default.

    Запись — всегда read-modify-write целого списка, без блокировок:
    при двух писателях выигрывает последний.
    """

    def __init__(self, kv_store: KeyValueStore) -> None:
        self._kv = kv_store

    def _load_json(self, key: str) -> Any:
        raw = self._kv.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            logger.warning("Malformed JSON under key '%s', treating as absent", key)
            return None

    @staticmethod
    def _dump(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False)

    def load_records(self, kind: RecordKind) -> List[Dict[str, Any]]:
        data = self._load_json(kind.value)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(
                "Expected a JSON list under key '%s', got %s; treating as empty",
                kind.value,
                type(data).__name__,
            )
            return []
        return [item for item in data if isinstance(item, dict)]

    def save_records(self, kind: RecordKind, records: List[Dict[str, Any]]) -> None:
        self._kv.set(kind.value, self._dump(list(records)))

    def save_many(self, batches: Mapping[RecordKind, List[Dict[str, Any]]]) -> None:
        self._kv.set_many({kind.value: self._dump(list(records)) for kind, records in batches.items()})

    def load_document(self, kind: RecordKind, default: Any) -> Any:
        data = self._load_json(kind.value)
        if data is None:
            # копия, чтобы вызывающий код не испортил общий default
            return copy.deepcopy(default)
        if default is not None and not isinstance(data, type(default)):
            logger.warning(
                "Unexpected JSON type under key '%s' (%s), using default",
                kind.value,
                type(data).__name__,
            )
            return copy.deepcopy(default)
        return data

    def save_document(self, kind: RecordKind, value: Any) -> None:
        self._kv.set(kind.value, self._dump(value))


def make_memory_store(initial: Optional[Mapping[RecordKind, Any]] = None) -> JsonRecordStore:
    """Удобная фабрика: JsonRecordStore в памяти, опционально с начальными данными."""
    kv = InMemoryKeyValueStore(
        {kind.value: json.dumps(value, ensure_ascii=False) for kind, value in (initial or {}).items()}
    )
    return JsonRecordStore(kv)
