# fieldops/reference/reference_data.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from fieldops.data_models import Visit


@dataclass(frozen=True)
class ProductOptions:
    """Списки допустимых продуктов для трёх слотов визита."""
    products1: Tuple[str, ...] = ()
    products2: Tuple[str, ...] = ()
    products3: Tuple[str, ...] = ()

    def for_slot(self, slot: int) -> Tuple[str, ...]:
        return (self.products1, self.products2, self.products3)[slot - 1]


@dataclass(frozen=True)
class DoctorProfile:
    """Справочная карточка врача: закреплённые продукты и «адрес» в дереве локаций."""
    name: str
    products: ProductOptions
    country: str
    area: str
    city: str
    address: str
    brand: str
    classification: str
    specialty: str


LOCATIONS: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "المملكة العربية السعودية": {
        "المنطقة الشرقية": ("الدمام", "الخبر", "الظهران"),
        "المنطقة الوسطى": ("الرياض", "الخرج", "المجمعة"),
        "المنطقة الغربية": ("جدة", "مكة المكرمة", "المدينة المنورة"),
    },
    "الإمارات العربية المتحدة": {
        "إمارة دبي": ("دبي", "جبل علي"),
        "إمارة أبوظبي": ("أبوظبي", "العين"),
        "إمارة الشارقة": ("الشارقة", "خورفكان"),
    },
    "مصر": {
        "القاهرة الكبرى": ("القاهرة", "الجيزة", "6 أكتوبر"),
        "الإسكندرية": ("الإسكندرية", "برج العرب"),
        "الدلتا": ("المنصورة", "طنطا"),
    },
}

BRANDS: Tuple[str, ...] = ("فايزر", "نوفارتس", "روش", "سانوفي", "باير")

CLASSIFICATIONS: Tuple[str, ...] = ("Class A", "Class B", "Class C")

SPECIALTIES: Tuple[str, ...] = (
    "أمراض القلب",
    "أمراض الباطنة",
    "طب الأطفال",
    "أمراض النساء والتوليد",
    "جراحة العظام",
    "طب العيون",
    "الأمراض الجلدية",
    "الأنف والأذن والحنجرة",
    "الطب النفسي",
    "المخ والأعصاب",
)

CLINICS: Tuple[str, ...] = (
    "عيادة الشفاء",
    "مركز الرعاية الطبي",
    "عيادة النور",
    "المركز التخصصي",
    "عيادة الأمل",
    "مستشفى السلام",
    "مركز الحياة الطبي",
    "عيادة الرحمة",
    "المركز الدولي",
    "مجمع العيادات الحديثة",
)


def _doctor(
    name: str,
    products: Tuple[Sequence[str], Sequence[str], Sequence[str]],
    country: str,
    area: str,
    city: str,
    address: str,
    brand: str,
    classification: str,
    specialty: str,
) -> DoctorProfile:
    return DoctorProfile(
        name=name,
        products=ProductOptions(tuple(products[0]), tuple(products[1]), tuple(products[2])),
        country=country,
        area=area,
        city=city,
        address=address,
        brand=brand,
        classification=classification,
        specialty=specialty,
    )


DOCTORS: Tuple[DoctorProfile, ...] = (
    _doctor("د. أحمد محمد", (("Panadol", "Brufen"), ("Nexium", "Lipitor"), ("Concor", "Glucophage")),
            "المملكة العربية السعودية", "المنطقة الشرقية", "الدمام", "شارع الملك فهد، حي النور",
            "فايزر", "Class A", "أمراض القلب"),
    _doctor("د. سارة خالد", (("Augmentin", "Amoxil"), ("Zithromax", "Crestor"), ("Ventolin", "Lantus")),
            "الإمارات العربية المتحدة", "إمارة دبي", "دبي", "شارع الشيخ زايد، برج الخليج",
            "نوفارتس", "Class B", "طب الأطفال"),
    _doctor("د. محمد عبدالله", (("Voltaren", "Panadol"), ("Plavix", "Nexium"), ("Januvia", "Concor")),
            "مصر", "القاهرة الكبرى", "القاهرة", "شارع التحرير، وسط البلد",
            "روش", "Class A", "أمراض الباطنة"),
    _doctor("د. فاطمة علي", (("Brufen", "Voltaren"), ("Lipitor", "Zithromax"), ("Glucophage", "Ventolin")),
            "المملكة العربية السعودية", "المنطقة الغربية", "جدة", "شارع فلسطين، حي الروضة",
            "سانوفي", "Class B", "أمراض النساء والتوليد"),
    _doctor("د. عمر حسن", (("Amoxil", "Augmentin"), ("Crestor", "Plavix"), ("Lantus", "Januvia")),
            "الإمارات العربية المتحدة", "إمارة أبوظبي", "أبوظبي", "شارع الكورنيش، برج المارينا",
            "باير", "Class C", "جراحة العظام"),
    _doctor("د. ليلى أحمد", (("Panadol", "Amoxil"), ("Nexium", "Crestor"), ("Concor", "Lantus")),
            "مصر", "الإسكندرية", "الإسكندرية", "طريق الحرية، سموحة",
            "فايزر", "Class A", "طب العيون"),
    _doctor("د. خالد العمري", (("Voltaren", "Brufen"), ("Lipitor", "Plavix"), ("Glucophage", "Januvia")),
            "المملكة العربية السعودية", "المنطقة الوسطى", "الرياض", "طريق الملك عبدالله، حي الورود",
            "نوفارتس", "Class B", "الأمراض الجلدية"),
    _doctor("د. نورة السعيد", (("Augmentin", "Panadol"), ("Zithromax", "Nexium"), ("Ventolin", "Concor")),
            "الإمارات العربية المتحدة", "إمارة الشارقة", "الشارقة", "شارع الاتحاد، المجاز",
            "روش", "Class C", "الأنف والأذن والحنجرة"),
    _doctor("د. طارق حسين", (("Brufen", "Amoxil"), ("Crestor", "Lipitor"), ("Lantus", "Glucophage")),
            "مصر", "الدلتا", "المنصورة", "شارع الجمهورية، حي الجامعة",
            "سانوفي", "Class A", "الطب النفسي"),
    _doctor("د. رنا محمود", (("Voltaren", "Augmentin"), ("Plavix", "Zithromax"), ("Januvia", "Ventolin")),
            "المملكة العربية السعودية", "المنطقة الشرقية", "الخبر", "شارع الأمير تركي، حي اليرموك",
            "باير", "Class B", "المخ والأعصاب"),
)


class ReferenceData:
    """
    Неизменяемые справочники: дерево локаций (страна → регион → город),
    бренды, классификации, специальности и карточки врачей.

    Все запросы идут по точному ключу. Неизвестный ключ даёт пустой список
    (или None для одиночных значений), исключений здесь нет.
    """

    def __init__(
        self,
        locations: Mapping[str, Mapping[str, Sequence[str]]],
        brands: Sequence[str],
        classifications: Sequence[str],
        specialties: Sequence[str],
        doctors: Sequence[DoctorProfile],
        clinics: Sequence[str] = (),
    ) -> None:
        self._locations: Dict[str, Dict[str, Tuple[str, ...]]] = {
            country: {area: tuple(cities) for area, cities in areas.items()}
            for country, areas in locations.items()
        }
        self._brands = tuple(brands)
        self._classifications = tuple(classifications)
        self._specialties = tuple(specialties)
        self._clinics = tuple(clinics)
        self._doctors: Dict[str, DoctorProfile] = {d.name: d for d in doctors}

    # ---------- Локации ----------

    def countries(self) -> List[str]:
        return list(self._locations)

    def areas(self, country: str) -> List[str]:
        if not country:
            return []
        return list(self._locations.get(country, {}))

    def cities(self, country: str, area: str) -> List[str]:
        if not country or not area:
            return []
        return list(self._locations.get(country, {}).get(area, ()))

    def locate_area(self, area: str) -> Optional[str]:
        """Страна, к которой относится регион (первое совпадение)."""
        for country, areas in self._locations.items():
            if area in areas:
                return country
        return None

    def locate_city(self, city: str) -> Optional[Tuple[str, str]]:
        """Пара (страна, регион) для города (первое совпадение)."""
        for country, areas in self._locations.items():
            for area, cities in areas.items():
                if city in cities:
                    return country, area
        return None

    def is_valid_location(self, country: str, area: str = "", city: str = "") -> bool:
        """
        Проверка вложенности: регион принадлежит стране, город — региону.
        Пустые дочерние поля допустимы.
        """
        if area and area not in self.areas(country):
            return False
        if city and city not in self.cities(country, area):
            return False
        return True

    # ---------- Плоские справочники ----------

    def brands(self) -> List[str]:
        return list(self._brands)

    def classifications(self) -> List[str]:
        return list(self._classifications)

    def specialties(self) -> List[str]:
        return list(self._specialties)

    def clinics(self) -> List[str]:
        return list(self._clinics)

    # ---------- Врачи и продукты ----------

    def doctors(self) -> List[str]:
        return list(self._doctors)

    def doctor_profile(self, doctor_name: str) -> Optional[DoctorProfile]:
        return self._doctors.get(doctor_name)

    def doctor_products(self, doctor_name: str) -> Optional[ProductOptions]:
        profile = self._doctors.get(doctor_name)
        return None if profile is None else profile.products

    def medicines(self) -> List[str]:
        """Все продукты из карточек врачей без повторов, в порядке первого появления."""
        seen: Dict[str, None] = {}
        for profile in self._doctors.values():
            for slot in (1, 2, 3):
                for product in profile.products.for_slot(slot):
                    seen.setdefault(product, None)
        return list(seen)

    def ineligible_products(self, visit: Visit) -> List[str]:
        """
        Продукты визита, которых нет в списках врача для соответствующего слота.

        Проверка только информативная: сохранённые визиты ею не отклоняются.
        Для врача без карточки возвращается пустой список.
        """
        products = self.doctor_products(visit.doctor_name)
        if products is None:
            return []
        return [
            product
            for slot, (product, _samples) in enumerate(visit.products(), start=1)
            if product and product not in products.for_slot(slot)
        ]


_DEFAULT_REFERENCE = ReferenceData(
    locations=LOCATIONS,
    brands=BRANDS,
    classifications=CLASSIFICATIONS,
    specialties=SPECIALTIES,
    doctors=DOCTORS,
    clinics=CLINICS,
)


def get_reference_data() -> ReferenceData:
    """Справочники по умолчанию (общий экземпляр, изменять нельзя)."""
    return _DEFAULT_REFERENCE
