# tests/test_report_export.py
import pandas as pd
import pytest

from fieldops.data_models import MetricPoint, Visit
from fieldops.io.report_export import (
    export_dashboard_xlsx,
    export_frame_csv,
    frame_to_visits,
    load_visits_from_xlsx,
    metrics_to_frame,
    visits_to_frame,
)
from fieldops.metrics.visit_metrics import build_dashboard


def _visits():
    return [
        Visit(
            id="v1",
            doctor_name="د. أحمد محمد",
            product1="Panadol",
            samples1=3,
            product2="Nexium",
            samples2=2,
            product3="Concor",
            samples3=1,
            visit_date="2024-01-05",
            country="المملكة العربية السعودية",
        ),
        Visit(
            id="v2",
            doctor_name="د. سارة خالد",
            product1="Augmentin",
            samples1=4,
            product2="Crestor",
            samples2=1,
            product3="Lantus",
            samples3=2,
            visit_date="2024-01-06",
            country="الإمارات العربية المتحدة",
        ),
    ]


def test_visits_to_frame_uses_store_keys():
    df = visits_to_frame(_visits())

    assert list(df.columns)[:3] == ["id", "doctorName", "clinicName"]
    assert df["samples1"].tolist() == [3, 4]


def test_metrics_to_frame():
    df = metrics_to_frame([MetricPoint("Panadol", 8), MetricPoint("Nexium", 4)], "samples")

    assert list(df.columns) == ["name", "samples"]
    assert df.to_dict(orient="records") == [
        {"name": "Panadol", "samples": 8},
        {"name": "Nexium", "samples": 4},
    ]


def test_export_csv_keeps_arabic_text(tmp_path):
    path = export_frame_csv(visits_to_frame(_visits()), tmp_path / "out" / "visits.csv")

    df = pd.read_csv(path, encoding="utf-8-sig")
    assert df["doctorName"].tolist() == ["د. أحمد محمد", "د. سارة خالد"]


def test_frame_to_visits_understands_arabic_headers():
    df = pd.DataFrame(
        {
            "الطبيب": ["د. أحمد محمد", None],
            "التاريخ": pd.to_datetime(["2024-01-05", "2024-01-06"]),
            "المنتج الأول": ["Panadol", "Brufen"],
            "عينات المنتج الأول": [3, 2],
        }
    )

    visits = frame_to_visits(df)

    assert len(visits) == 1
    assert visits[0].id == "visit-1"
    assert visits[0].doctor_name == "د. أحمد محمد"
    assert visits[0].visit_date == "2024-01-05"
    assert visits[0].product1 == "Panadol"
    assert visits[0].samples1 == 3
    assert visits[0].product2 == ""


def test_frame_to_visits_requires_doctor_and_date():
    with pytest.raises(ValueError):
        frame_to_visits(pd.DataFrame({"الطبيب": ["د. أحمد محمد"]}))


def test_export_dashboard_xlsx(tmp_path):
    visits = _visits()

    path = export_dashboard_xlsx(tmp_path / "reports" / "dashboard.xlsx", build_dashboard(visits), visits)

    assert pd.ExcelFile(path).sheet_names == [
        "summary",
        "by_doctor",
        "by_country",
        "by_classification",
        "product_usage",
        "over_time",
        "visits",
    ]
    summary = pd.read_excel(path, sheet_name="summary")
    assert dict(zip(summary["metric"], summary["value"])) == {
        "total_visits": 2,
        "total_samples": 13,
        "doctor_count": 2,
    }

    loaded = load_visits_from_xlsx(path, sheet_name="visits")
    assert [v.id for v in loaded] == ["v1", "v2"]
    assert [v.samples1 for v in loaded] == [3, 4]
    assert [v.doctor_name for v in loaded] == ["د. أحمد محمد", "د. سارة خالد"]
