"""Модели данных ValutaWatch Hub: курсы, точки тренда, новости, записи кэша."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RateRecord:
    """Курс одной валюты относительно базовой валюты запроса."""

    id: str  # Совпадает с кодом валюты
    currency: str  # ISO 4217 код в верхнем регистре
    currency_name: str  # Отображаемое название
    symbol: str  # Символ валюты (например, "$")
    rate: float  # Курс относительно базовой валюты (> 0)
    flag: str  # URL изображения флага
    updated_at: str  # Время обновления у провайдера

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация записи в словарь для JSON."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RateRecord":
        """Восстановление записи из словаря.

        Args:
            data: Словарь с полями RateRecord

        Returns:
            Новый экземпляр RateRecord

        Raises:
            KeyError: Если отсутствует обязательное поле
            ValueError: Если rate не приводится к float
        """
        return cls(
            id=str(data["id"]),
            currency=str(data["currency"]),
            currency_name=str(data["currency_name"]),
            symbol=str(data["symbol"]),
            rate=float(data["rate"]),
            flag=str(data["flag"]),
            updated_at=str(data["updated_at"]),
        )


@dataclass(frozen=True)
class TrendPoint:
    """Одна дневная точка ряда тренда валютной пары."""

    date: str  # ISO дата YYYY-MM-DD
    label: str  # Короткая подпись, например "Jan 5"
    from_rate: float  # Курс исходной валюты к базовой
    to_rate: float  # Курс целевой валюты к базовой

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrendPoint":
        return cls(
            date=str(data["date"]),
            label=str(data["label"]),
            from_rate=float(data["from_rate"]),
            to_rate=float(data["to_rate"]),
        )


@dataclass(frozen=True)
class NewsRecord:
    """Нормализованная новость по валюте."""

    id: str
    title: str
    link: str
    source: str
    published_at: str
    description: str
    currency: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewsRecord":
        return cls(**{field: str(data[field]) for field in cls.__dataclass_fields__})


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Запись кэша: данные и абсолютный момент истечения (POSIX секунды)."""

    data: T
    expires_at: float

    def is_valid(self, now: float) -> bool:
        """Проверить актуальность записи.

        Args:
            now: Текущее время в секундах POSIX

        Returns:
            True если запись еще не истекла (now < expires_at)
        """
        return now < self.expires_at


__all__ = [
    "RateRecord",
    "TrendPoint",
    "NewsRecord",
    "CacheEntry",
]
