"""Конфигурация Parser Service: эндпоинты, TTL кэшей, параметры запросов."""

import os  # os.getenv для переопределения эндпоинтов
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv  # Переменные окружения из .env

from valutawatch_hub.infra.settings import SettingsLoader

# Загрузка .env из текущей директории (если файл есть)
load_dotenv()


def _env(name: str, default: str) -> str:
    """Значение переменной окружения или default для пустых значений."""
    return os.getenv(name) or default


@dataclass(frozen=True)  # Неизменяемый конфиг
class ParserConfig:
    """Конфигурация загрузчиков курсов, трендов и новостей."""

    # Базовые URL эндпоинтов API (переопределяются через окружение)
    RATES_API_URL: str = field(
        default_factory=lambda: _env(
            "VALUTAWATCH_RATES_API_URL", "https://open.er-api.com/v6/latest"
        )
    )
    TREND_API_URL: str = field(
        default_factory=lambda: _env(
            "VALUTAWATCH_TREND_API_URL", "https://api.frankfurter.app"
        )
    )
    NEWS_API_URL: str = field(
        default_factory=lambda: _env(
            "VALUTAWATCH_NEWS_API_URL", "https://api.rss2json.com/v1/api.json"
        )
    )
    NEWS_RSS_URL: str = "https://news.google.com/rss/search"

    # Базовая валюта по умолчанию
    BASE_CURRENCY: str = "USD"

    # TTL кэшей в секундах
    RATES_TTL_SECONDS: int = 3600
    TREND_TTL_SECONDS: int = 600
    NEWS_TTL_SECONDS: int = 1800

    # Форма ряда тренда и ленты новостей
    TREND_POINTS: int = 7
    TREND_LOOKBACK_DAYS: int = 14
    NEWS_LIMIT: int = 12

    # Параметры HTTP запросов
    REQUEST_TIMEOUT_SECONDS: int = 10
    MAX_RETRIES: int = 1

    # Путь к снимку кэша
    SNAPSHOT_FILE_PATH: str = "data/currencies-store.json"

    @classmethod
    def from_settings(cls, settings: Optional[SettingsLoader] = None) -> "ParserConfig":
        """Собрать конфиг с учетом секции [tool.valutawatch] из pyproject.toml.

        Args:
            settings: Загрузчик настроек (по умолчанию синглтон SettingsLoader)

        Returns:
            Экземпляр ParserConfig
        """
        settings = settings or SettingsLoader()
        data_dir: str = settings.get("data_dir", "data")

        return cls(
            BASE_CURRENCY=str(settings.get("base_currency", "USD")).upper(),
            RATES_TTL_SECONDS=int(settings.get("rates_ttl_seconds", 3600)),
            TREND_TTL_SECONDS=int(settings.get("trend_ttl_seconds", 600)),
            NEWS_TTL_SECONDS=int(settings.get("news_ttl_seconds", 1800)),
            REQUEST_TIMEOUT_SECONDS=int(settings.get("request_timeout_seconds", 10)),
            MAX_RETRIES=int(settings.get("request_max_retries", 1)),
            SNAPSHOT_FILE_PATH=os.path.join(data_dir, "currencies-store.json"),
        )


# Глобальный экземпляр конфигурации
config: ParserConfig = ParserConfig.from_settings()
