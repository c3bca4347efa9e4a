# fieldops/io/report_export.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence, Union

import pandas as pd

from fieldops.data_models import VISIT_FIELD_KEYS, MetricPoint, Visit
from fieldops.metrics.visit_metrics import DashboardMetrics


logger = logging.getLogger(__name__)


# Заголовки выгрузки визитов (как в таблице дашборда) -> ключи хранилища
VISIT_COLUMN_MAPPING: Dict[str, str] = {
    "المعرف": "id",
    "الطبيب": "doctorName",
    "العيادة": "clinicName",
    "المنتج الأول": "product1",
    "المنتج الثاني": "product2",
    "المنتج الثالث": "product3",
    "عينات المنتج الأول": "samples1",
    "عينات المنتج الثاني": "samples2",
    "عينات المنتج الثالث": "samples3",
    "التاريخ": "visitDate",
    "الوقت": "visitTime",
    "الدولة": "country",
    "المنطقة": "area",
    "المدينة": "city",
    "العنوان": "address",
    "العلامة التجارية": "brand",
    "التصنيف": "classification",
    "التخصص": "specialty",
}

# Листы выгрузки дашборда: имя листа -> (атрибут DashboardMetrics, заголовок значения)
DASHBOARD_SHEETS = {
    "by_doctor": ("by_doctor", "visits"),
    "by_country": ("by_country", "visits"),
    "by_classification": ("by_classification", "visits"),
    "product_usage": ("product_usage", "samples"),
    "over_time": ("over_time", "visits"),
}


def visits_to_frame(visits: Sequence[Visit]) -> pd.DataFrame:
    """Визиты -> DataFrame с колонками в формате хранилища (camelCase)."""
    columns = list(VISIT_FIELD_KEYS.values())
    return pd.DataFrame([visit.to_dict() for visit in visits], columns=columns)


def metrics_to_frame(points: Sequence[MetricPoint], value_column: str = "value") -> pd.DataFrame:
    return pd.DataFrame(
        [(p.name, p.value) for p in points],
        columns=["name", value_column],
    )


def summary_to_frame(dashboard: DashboardMetrics) -> pd.DataFrame:
    summary = dashboard.summary
    return pd.DataFrame(
        [
            ("total_visits", summary.total_visits),
            ("total_samples", summary.total_samples),
            ("doctor_count", summary.doctor_count),
        ],
        columns=["metric", "value"],
    )


def export_dashboard_xlsx(
    path: Union[str, Path],
    dashboard: DashboardMetrics,
    visits: Sequence[Visit],
) -> Path:
    """
    Выгружает дашборд в xlsx: лист сводки, по листу на каждый агрегат
    и лист с самими визитами.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(path) as writer:
        summary_to_frame(dashboard).to_excel(writer, sheet_name="summary", index=False)
        for sheet_name, (attr, value_column) in DASHBOARD_SHEETS.items():
            metrics_to_frame(getattr(dashboard, attr), value_column).to_excel(
                writer, sheet_name=sheet_name, index=False
            )
        visits_to_frame(visits).to_excel(writer, sheet_name="visits", index=False)

    logger.info("Dashboard exported to %s (%s visits)", path, len(visits))
    return path


def export_frame_csv(frame: pd.DataFrame, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    # utf-8-sig, чтобы Excel открывал арабский текст без кракозябр
    frame.to_csv(path, index=False, encoding="utf-8-sig")
    return path


def frame_to_visits(df: pd.DataFrame) -> List[Visit]:
    """
    DataFrame -> визиты.

    Понимает как арабские заголовки выгрузки, так и ключи хранилища.
    Строки без врача пропускаются, NaN превращается в пустую строку.
    """
    existing_mapping = {src: dst for src, dst in VISIT_COLUMN_MAPPING.items() if src in df.columns}
    df = df.rename(columns=existing_mapping)

    missing = [key for key in ("doctorName", "visitDate") if key not in df.columns]
    if missing:
        raise ValueError(f"Missing columns in visits sheet: {missing}")

    df = df[~df["doctorName"].isna()]
    df = df.fillna("")

    visits = []
    for idx, row in enumerate(df.to_dict(orient="records"), start=1):
        if not row.get("id"):
            row["id"] = f"visit-{idx}"
        if hasattr(row["visitDate"], "strftime"):
            row["visitDate"] = row["visitDate"].strftime("%Y-%m-%d")
        visits.append(Visit.from_dict(row))
    return visits


def load_visits_from_xlsx(xlsx_path: Union[str, Path], sheet_name: Union[str, int] = 0) -> List[Visit]:
    df = pd.read_excel(xlsx_path, sheet_name=sheet_name)
    df.columns = [str(c).strip() for c in df.columns]
    return frame_to_visits(df)
