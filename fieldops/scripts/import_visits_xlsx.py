# fieldops/scripts/import_visits_xlsx.py
"""
Загрузка визитов из xlsx в хранилище (ключ "visits").
Запуск: python -m fieldops.scripts.import_visits_xlsx [path.xlsx]
"""
from __future__ import annotations

import logging
import sys

from fieldops.config import config
from fieldops.io.base import RecordKind, RecordStoreError
from fieldops.io.db_io import init_db, make_sql_record_store
from fieldops.io.report_export import load_visits_from_xlsx
from fieldops.reference.reference_data import get_reference_data


logger = logging.getLogger(__name__)

VISITS_XLSX_PATH = "visits.xlsx"


def import_visits(xlsx_path: str = VISITS_XLSX_PATH, replace: bool = False) -> int:
    """
    Читает визиты из xlsx и дописывает (или заменяет) список в хранилище.
    Продукты вне списков врача не отклоняются, только попадают в лог.
    Возвращает количество импортированных визитов.
    """
    visits = load_visits_from_xlsx(xlsx_path)
    reference = get_reference_data()

    for visit in visits:
        ineligible = reference.ineligible_products(visit)
        if ineligible:
            logger.warning(
                "Visit %s: products %s are not assigned to doctor '%s'",
                visit.id,
                ineligible,
                visit.doctor_name,
            )
        if not reference.is_valid_location(visit.country, visit.area, visit.city):
            logger.warning(
                "Visit %s: location '%s' / '%s' / '%s' is not consistent",
                visit.id,
                visit.country,
                visit.area,
                visit.city,
            )

    init_db()
    store = make_sql_record_store()
    existing = [] if replace else store.load_records(RecordKind.VISITS)
    store.save_records(RecordKind.VISITS, existing + [visit.to_dict() for visit in visits])

    logger.info("Imported %s visits from %s (replace=%s)", len(visits), xlsx_path, replace)
    return len(visits)


def main() -> int:
    logging.basicConfig(level=config.log_level)
    path = sys.argv[1] if len(sys.argv) > 1 else VISITS_XLSX_PATH
    try:
        import_visits(path)
    except (OSError, ValueError) as e:
        logger.error("Failed to read visits from %s: %s", path, e)
        return 1
    except RecordStoreError as e:
        logger.error("Record store error: %s", e)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
