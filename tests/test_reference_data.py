# tests/test_reference_data.py
from fieldops.data_models import Visit
from fieldops.reference.reference_data import DoctorProfile, ProductOptions, ReferenceData, get_reference_data


SAUDI = "المملكة العربية السعودية"


def test_location_tree_lookups():
    reference = get_reference_data()

    assert reference.countries() == [SAUDI, "الإمارات العربية المتحدة", "مصر"]
    assert reference.areas("مصر") == ["القاهرة الكبرى", "الإسكندرية", "الدلتا"]
    assert reference.cities("مصر", "الدلتا") == ["المنصورة", "طنطا"]
    assert reference.areas("") == []
    assert reference.areas("أستراليا") == []
    assert reference.cities(SAUDI, "إمارة دبي") == []


def test_locate_helpers():
    reference = get_reference_data()

    assert reference.locate_city("الخبر") == (SAUDI, "المنطقة الشرقية")
    assert reference.locate_area("إمارة الشارقة") == "الإمارات العربية المتحدة"
    assert reference.locate_city("لندن") is None


def test_is_valid_location():
    reference = get_reference_data()

    assert reference.is_valid_location(SAUDI, "المنطقة الغربية", "جدة")
    assert reference.is_valid_location(SAUDI)
    assert not reference.is_valid_location(SAUDI, "المنطقة الغربية", "الدمام")
    assert not reference.is_valid_location("مصر", "المنطقة الغربية")


def test_flat_lists():
    reference = get_reference_data()

    assert reference.classifications() == ["Class A", "Class B", "Class C"]
    assert len(reference.brands()) == 5
    assert len(reference.specialties()) == 10
    assert len(reference.doctors()) == 10
    assert "عيادة النور" in reference.clinics()


def test_doctor_products():
    reference = get_reference_data()

    products = reference.doctor_products("د. أحمد محمد")

    assert products.for_slot(1) == ("Panadol", "Brufen")
    assert products.for_slot(3) == ("Concor", "Glucophage")
    assert reference.doctor_products("د. غير معروف") is None
    assert reference.doctor_profile("د. أحمد محمد").city == "الدمام"


def test_medicines_are_unique_in_first_seen_order():
    medicines = get_reference_data().medicines()

    assert medicines[:4] == ["Panadol", "Brufen", "Nexium", "Lipitor"]
    assert len(medicines) == len(set(medicines))


def test_ineligible_products_is_per_slot():
    reference = get_reference_data()
    visit = Visit(id="v1", doctor_name="د. أحمد محمد", product1="Nexium", product2="Lipitor", product3="")

    assert reference.ineligible_products(visit) == ["Nexium"]
    assert reference.ineligible_products(Visit(id="v2", doctor_name="د. غير معروف", product1="X")) == []


def test_custom_reference_data():
    doctor = DoctorProfile(
        name="د. تجريبي",
        products=ProductOptions(("A",), ("B",), ("C",)),
        country="بلد",
        area="منطقة",
        city="مدينة",
        address="",
        brand="",
        classification="Class A",
        specialty="",
    )
    reference = ReferenceData(
        locations={"بلد": {"منطقة": ["مدينة"]}},
        brands=[],
        classifications=["Class A"],
        specialties=[],
        doctors=[doctor],
    )

    assert reference.cities("بلد", "منطقة") == ["مدينة"]
    assert reference.medicines() == ["A", "B", "C"]
    assert reference.clinics() == []
