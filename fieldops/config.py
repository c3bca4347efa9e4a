# fieldops/config.py
from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

# Загружаем .env
load_dotenv()


@dataclass
class StoreConfig:
    """
    Конфиг хранилища записей.
    Хранилище — плоская таблица ключ/значение, значения — JSON-строки.
    """
    database_url: str = field(
        default_factory=lambda: os.getenv("FIELDOPS_DATABASE_URL", "sqlite:///data/fieldops.db")
    )
    table_name: str = "kv_store"
    echo: bool = False


@dataclass
class EvaluationConfig:
    # Шаг шкалы оценок (половина балла)
    half_point_step: float = 0.5
    # Пороги уровней, сравнение строгое: total > порог
    excellent_threshold: float = 85
    development_threshold: float = 75
    training_threshold: float = 65
    action_plan_threshold: float = 55


@dataclass
class ReportConfig:
    # Плановое количество визитов в рабочий день
    target_daily_visits: int = 5
    export_dir: str = field(default_factory=lambda: os.getenv("FIELDOPS_EXPORT_DIR", "exports"))


@dataclass
class AppConfig:
    store: StoreConfig = field(default_factory=StoreConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    log_level: str = field(default_factory=lambda: os.getenv("FIELDOPS_LOG_LEVEL", "INFO"))


# Глобальный объект конфига, который можно импортировать как `from fieldops.config import config`
config = AppConfig()
