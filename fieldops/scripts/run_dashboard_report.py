# fieldops/scripts/run_dashboard_report.py
"""
Дашборд визитов: фильтрация, агрегаты, выгрузка в xlsx.
Запуск: python -m fieldops.scripts.run_dashboard_report
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from fieldops.config import config
from fieldops.data_models import Visit, parse_records
from fieldops.filtering.filter_engine import filter_records
from fieldops.filtering.filter_state import FilterState
from fieldops.io.base import RecordKind, RecordStoreError
from fieldops.io.db_io import init_db, make_sql_record_store
from fieldops.io.report_export import export_dashboard_xlsx
from fieldops.metrics.visit_metrics import build_dashboard


logger = logging.getLogger(__name__)


def run_dashboard_report(filter_state: Optional[FilterState] = None) -> Path:
    """
    Делает:
    - загрузку визитов из хранилища;
    - фильтрацию и расчёт всех агрегатов;
    - краткий отчёт в лог и выгрузку в xlsx.
    """
    filter_state = filter_state or FilterState()

    init_db()
    store = make_sql_record_store()
    visits = parse_records(store.load_records(RecordKind.VISITS), Visit.from_dict)

    filtered = filter_records(visits, filter_state)
    dashboard = build_dashboard(filtered)

    logger.info("Active filters: %s", filter_state.active_fields() or "none")
    logger.info("Visits: %s of %s", dashboard.summary.total_visits, len(visits))
    logger.info("Samples handed out: %s", dashboard.summary.total_samples)
    logger.info("Doctors visited: %s", dashboard.summary.doctor_count)
    for point in dashboard.by_doctor[:5]:
        logger.info("  %s: %s", point.name, point.value)

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = Path(config.report.export_dir) / f"dashboard_{stamp}.xlsx"
    return export_dashboard_xlsx(path, dashboard, filtered)


def main() -> int:
    logging.basicConfig(level=config.log_level)
    try:
        run_dashboard_report()
    except RecordStoreError as e:
        logger.error("Record store error: %s", e)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
