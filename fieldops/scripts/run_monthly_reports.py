# fieldops/scripts/run_monthly_reports.py
"""
Месячные отчёты: визиты представителя и аптечные сборы/заказы.
Запуск: python -m fieldops.scripts.run_monthly_reports [yyyy-MM]
"""
from __future__ import annotations

import logging
import sys
from datetime import date

from fieldops.config import config
from fieldops.data_models import CollectionRecord, Visit, parse_records
from fieldops.io.base import RecordKind, RecordStoreError
from fieldops.io.db_io import init_db, make_sql_record_store
from fieldops.metrics.pharmacy_metrics import monthly_pharmacy_report
from fieldops.metrics.visit_report import monthly_visit_report
from fieldops.scheduling.work_calendar import CalendarService


logger = logging.getLogger(__name__)


def run_monthly_reports(month: str) -> None:
    init_db()
    store = make_sql_record_store()

    visits = parse_records(store.load_records(RecordKind.VISITS), Visit.from_dict)
    collections = parse_records(store.load_records(RecordKind.COLLECTIONS), CollectionRecord.from_dict)
    work_calendar = CalendarService(store).get_calendar()

    visit_report = monthly_visit_report(visits, month, work_calendar)
    logger.info("Visit report for %s", month)
    logger.info("Expected work days: %s, actual: %s", visit_report.expected_work_days, visit_report.actual_work_days)
    logger.info("Visits: %s / target %s", visit_report.actual_visits, visit_report.target_visits)
    logger.info("Visit completion: %.1f%%", visit_report.visit_completion)
    logger.info("Doctor coverage: %.1f%%", visit_report.doctor_coverage)

    pharmacy_report = monthly_pharmacy_report(collections, month)
    logger.info("Pharmacy report for %s", month)
    logger.info("Pharmacies visited: %s", pharmacy_report.pharmacies_visited)
    logger.info(
        "Collections: total %.2f, approved %.2f, pending %.2f",
        pharmacy_report.total_collections,
        pharmacy_report.approved_collections,
        pharmacy_report.pending_collections,
    )
    logger.info("Ordered quantity: %s", pharmacy_report.total_medicine_quantity)


def main() -> int:
    logging.basicConfig(level=config.log_level)
    month = sys.argv[1] if len(sys.argv) > 1 else date.today().strftime("%Y-%m")
    try:
        run_monthly_reports(month)
    except RecordStoreError as e:
        logger.error("Record store error: %s", e)
        return 2
    except (KeyError, ValueError) as e:
        logger.error("Bad month '%s' or malformed records: %s", month, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
