# tests/test_filter_state.py
import json

import pytest

from fieldops.data_models import Visit
from fieldops.filtering.filter_state import (
    DateRange,
    FilterState,
    ResetAll,
    SetArea,
    SetCity,
    SetCountry,
    SetDateBound,
    SetDoctor,
    SetField,
    SetProduct,
    apply_field_change,
    apply_filter_change,
    change_from_field,
    narrow_to_visit,
)


SAUDI = "المملكة العربية السعودية"
EAST = "المنطقة الشرقية"
WEST = "المنطقة الغربية"
DAMMAM = "الدمام"
JEDDAH = "جدة"
UAE = "الإمارات العربية المتحدة"
DR_AHMED = "د. أحمد محمد"
DR_SARA = "د. سارة خالد"


def test_set_doctor_clears_products_regardless_of_previous_values():
    prev = FilterState(doctor_name=DR_AHMED, product1="Panadol", product2="Nexium", product3="Concor")

    state = apply_filter_change(prev, SetDoctor(DR_SARA))

    assert state.doctor_name == DR_SARA
    assert (state.product1, state.product2, state.product3) == ("", "", "")


def test_set_country_clears_area_and_city():
    prev = FilterState(country=SAUDI, area=EAST, city=DAMMAM, brand="فايزر")

    state = apply_filter_change(prev, SetCountry(UAE))

    assert state.country == UAE
    assert state.area == ""
    assert state.city == ""
    assert state.brand == "فايزر"


def test_set_area_clears_city():
    prev = FilterState(country=SAUDI, area=EAST, city=DAMMAM)

    state = apply_filter_change(prev, SetArea(WEST))

    assert state.area == WEST
    assert state.city == ""


def test_set_area_outside_country_is_dropped():
    prev = FilterState(country=UAE)

    state = apply_filter_change(prev, SetArea(EAST))

    assert state.country == UAE
    assert state.area == ""


def test_set_area_without_country_fills_country():
    state = apply_filter_change(FilterState(), SetArea(WEST))

    assert state.country == SAUDI
    assert state.area == WEST


def test_set_city_without_location_fills_country_and_area():
    state = apply_filter_change(FilterState(), SetCity(JEDDAH))

    assert (state.country, state.area, state.city) == (SAUDI, WEST, JEDDAH)


def test_set_city_outside_area_is_dropped():
    prev = FilterState(country=SAUDI, area=EAST)

    state = apply_filter_change(prev, SetCity(JEDDAH))

    assert state.city == ""
    assert state.area == EAST


def test_set_product_must_belong_to_selected_doctor():
    prev = FilterState(doctor_name=DR_AHMED)

    allowed = apply_filter_change(prev, SetProduct(1, "Brufen"))
    rejected = apply_filter_change(prev, SetProduct(1, "Augmentin"))

    assert allowed.product1 == "Brufen"
    assert rejected.product1 == ""


def test_set_product_without_doctor_accepts_any_product():
    state = apply_filter_change(FilterState(), SetProduct(3, "Lantus"))

    assert state.product3 == "Lantus"


def test_set_product_rejects_bad_slot():
    with pytest.raises(ValueError):
        apply_filter_change(FilterState(), SetProduct(4, "Lantus"))


def test_set_date_bound_updates_only_that_bound():
    prev = FilterState(date_range=DateRange(start="2024-01-01", end="2024-01-31"))

    state = apply_filter_change(prev, SetDateBound("end", "2024-02-29"))

    assert state.date_range == DateRange(start="2024-01-01", end="2024-02-29")


def test_set_field_replaces_only_that_field():
    prev = FilterState(doctor_name=DR_AHMED, product1="Panadol")

    state = apply_filter_change(prev, SetField("brand", "روش"))

    assert state.brand == "روش"
    assert state.doctor_name == DR_AHMED
    assert state.product1 == "Panadol"


def test_set_field_rejects_cascading_fields():
    with pytest.raises(ValueError):
        apply_filter_change(FilterState(), SetField("country", SAUDI))


def test_change_from_field_maps_ui_names():
    assert change_from_field("doctorName", DR_AHMED) == SetDoctor(DR_AHMED)
    assert change_from_field("country", SAUDI) == SetCountry(SAUDI)
    assert change_from_field("product2", "Nexium") == SetProduct(2, "Nexium")
    assert change_from_field("date_start", "2024-03-01") == SetDateBound("start", "2024-03-01")
    assert change_from_field("clinicName", "عيادة النور") == SetField("clinic_name", "عيادة النور")


def test_change_from_field_unknown_name():
    with pytest.raises(ValueError):
        change_from_field("favouriteColour", "blue")


def test_reset_all_replaces_state_and_restores_location_chain():
    prev = FilterState(doctor_name=DR_AHMED, brand="فايزر", date_range=DateRange("2024-01-01", "2024-01-31"))
    payload = json.dumps({"city": JEDDAH, "dateRange": {"start": "", "end": ""}})

    state = apply_field_change(prev, "resetAll", payload)

    assert state == FilterState(country=SAUDI, area=WEST, city=JEDDAH)


def test_reset_all_drops_inconsistent_children():
    state = apply_filter_change(
        FilterState(),
        ResetAll(FilterState(country=UAE, area=EAST, city=DAMMAM, doctor_name=DR_AHMED, product1="Augmentin")),
    )

    assert state.country == UAE
    assert state.area == ""
    assert state.city == ""
    assert state.product1 == ""


def test_narrow_to_visit_city_keeps_location_chain():
    visit = Visit(
        id="visit-1",
        doctor_name=DR_AHMED,
        clinic_name="عيادة النور",
        country=SAUDI,
        area=EAST,
        city=DAMMAM,
        brand="فايزر",
    )

    change = narrow_to_visit(visit, "city")
    state = apply_filter_change(FilterState(doctor_name=DR_SARA, brand="روش"), change)

    assert state == FilterState(country=SAUDI, area=EAST, city=DAMMAM)


def test_narrow_to_visit_doctor_clears_everything_else():
    visit = Visit(id="visit-1", doctor_name=DR_AHMED, country=SAUDI, area=EAST, city=DAMMAM)

    change = narrow_to_visit(visit, "doctorName")

    assert change.state == FilterState(doctor_name=DR_AHMED)


def test_filter_state_dict_round_trip():
    state = FilterState(
        doctor_name=DR_AHMED,
        product1="Panadol",
        country=SAUDI,
        area=EAST,
        date_range=DateRange("2024-01-01", "2024-06-30"),
    )

    data = state.to_dict()

    assert data["doctorName"] == DR_AHMED
    assert data["dateRange"] == {"start": "2024-01-01", "end": "2024-06-30"}
    assert FilterState.from_dict(data) == state
