# fieldops/scheduling/work_calendar.py
from __future__ import annotations

import calendar
import logging
import time
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, List, Optional

from fieldops.data_models import Holiday, HolidayType, WorkingHours, WorkSettings
from fieldops.filtering.filter_engine import parse_iso_date
from fieldops.io.base import RecordKind, RecordStore


logger = logging.getLogger(__name__)


# 0 = воскресенье, как в настройках UI
WEEK_DAYS = (
    "الأحد",
    "الاثنين",
    "الثلاثاء",
    "الأربعاء",
    "الخميس",
    "الجمعة",
    "السبت",
)

WEEKLY_HOLIDAY_TYPE = "weekly"

DEFAULT_HOLIDAYS = (
    Holiday(id="1", date="2024-09-23", name="اليوم الوطني السعودي", type=HolidayType.NATIONAL, recurring=True),
    Holiday(id="2", date="2024-04-10", name="عيد الفطر", type=HolidayType.RELIGIOUS, recurring=False),
    Holiday(id="3", date="2024-06-16", name="عيد الأضحى", type=HolidayType.RELIGIOUS, recurring=False),
)


@dataclass(frozen=True)
class HolidayInfo:
    name: str
    type: str  # значение HolidayType или "weekly"


@dataclass(frozen=True)
class MonthStats:
    work_days: int
    holiday_days: int
    total_days: int


def week_day_index(day: date) -> int:
    """Индекс дня недели с воскресенья: 0 = воскресенье ... 6 = суббота."""
    return (day.weekday() + 1) % 7


def month_days(year: int, month: int) -> List[date]:
    _, last = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, last + 1)]


class WorkCalendar:
    """
    Чистая модель календаря: праздники + еженедельные выходные.
    Повторяющийся праздник совпадает по месяцу и дню в любом году.
    """

    def __init__(self, holidays: List[Holiday], settings: WorkSettings) -> None:
        self.holidays = list(holidays)
        self.settings = settings

    def _find_holiday(self, day: date) -> Optional[Holiday]:
        for holiday in self.holidays:
            holiday_date = parse_iso_date(holiday.date)
            if holiday_date is None:
                continue
            if holiday_date == day:
                return holiday
            if holiday.recurring and (holiday_date.month, holiday_date.day) == (day.month, day.day):
                return holiday
        return None

    def is_weekly_holiday(self, day: date) -> bool:
        return week_day_index(day) in self.settings.weekly_holidays

    def is_holiday(self, day: date) -> bool:
        return self.is_weekly_holiday(day) or self._find_holiday(day) is not None

    def holiday_info(self, day: date) -> Optional[HolidayInfo]:
        """Праздник из списка важнее еженедельного выходного."""
        holiday = self._find_holiday(day)
        if holiday is not None:
            return HolidayInfo(name=holiday.name, type=holiday.type.value)
        if self.is_weekly_holiday(day):
            return HolidayInfo(name=f"عطلة {WEEK_DAYS[week_day_index(day)]}", type=WEEKLY_HOLIDAY_TYPE)
        return None

    def work_days(self, year: int, month: int) -> List[date]:
        return [day for day in month_days(year, month) if not self.is_holiday(day)]

    def month_stats(self, year: int, month: int) -> MonthStats:
        days = month_days(year, month)
        work = sum(1 for day in days if not self.is_holiday(day))
        return MonthStats(work_days=work, holiday_days=len(days) - work, total_days=len(days))


class CalendarService:
    """
    Чтение/запись праздников и настроек через RecordStore.

    При отсутствии или порче данных используются встроенные значения
    по умолчанию (три праздника, выходной — пятница, 08:00–17:00).
    """

    def __init__(self, store: RecordStore, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock

    def load_holidays(self) -> List[Holiday]:
        raw = self._store.load_document(
            RecordKind.HOLIDAYS, [holiday.to_dict() for holiday in DEFAULT_HOLIDAYS]
        )
        holidays = []
        for item in raw:
            try:
                holidays.append(Holiday.from_dict(item))
            except (AttributeError, ValueError) as exc:
                logger.warning("Skipping malformed holiday %r: %s", item, exc)
        return holidays

    def load_settings(self) -> WorkSettings:
        raw = self._store.load_document(RecordKind.WORK_SETTINGS, WorkSettings().to_dict())
        return WorkSettings.from_dict(raw)

    def get_calendar(self) -> WorkCalendar:
        return WorkCalendar(self.load_holidays(), self.load_settings())

    def _save_holidays(self, holidays: List[Holiday]) -> None:
        self._store.save_document(RecordKind.HOLIDAYS, [holiday.to_dict() for holiday in holidays])

    def add_holiday(
        self,
        day: date,
        name: str,
        holiday_type: HolidayType = HolidayType.CUSTOM,
        recurring: bool = False,
    ) -> Holiday:
        if not name:
            raise ValueError("Holiday name must not be empty")
        holiday = Holiday(
            id=str(int(self._clock() * 1000)),
            date=day.isoformat(),
            name=name,
            type=holiday_type,
            recurring=recurring,
        )
        holidays = self.load_holidays()
        holidays.append(holiday)
        self._save_holidays(holidays)
        logger.info("Added holiday '%s' on %s", name, holiday.date)
        return holiday

    def update_holiday(self, holiday: Holiday) -> Holiday:
        holidays = self.load_holidays()
        for idx, existing in enumerate(holidays):
            if existing.id == holiday.id:
                holidays[idx] = holiday
                self._save_holidays(holidays)
                return holiday
        raise KeyError(f"Holiday '{holiday.id}' not found")

    def delete_holiday(self, holiday_id: str) -> None:
        holidays = self.load_holidays()
        self._save_holidays([h for h in holidays if h.id != holiday_id])

    def toggle_weekly_holiday(self, day_index: int) -> WorkSettings:
        if day_index not in range(7):
            raise ValueError(f"Week day index must be 0..6, got {day_index}")
        settings = self.load_settings()
        if day_index in settings.weekly_holidays:
            days = [d for d in settings.weekly_holidays if d != day_index]
        else:
            days = settings.weekly_holidays + [day_index]
        settings = replace(settings, weekly_holidays=days)
        self._store.save_document(RecordKind.WORK_SETTINGS, settings.to_dict())
        return settings

    def update_working_hours(self, start: str, end: str) -> WorkSettings:
        settings = replace(self.load_settings(), working_hours=WorkingHours(start=start, end=end))
        self._store.save_document(RecordKind.WORK_SETTINGS, settings.to_dict())
        return settings
