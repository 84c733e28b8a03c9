"""Модуль реестра валют: названия, символы и флаги для ValutaWatch Hub."""

import logging
from typing import Dict, Optional

from .exceptions import CurrencyNotFoundError


class Currency:
    """Описание валюты из локального реестра."""

    def __init__(self, code: str, name: str, symbol: str, country_code: str):
        """Инициализация валюты с валидацией входных данных.

        Args:
            code: ISO 4217 код валюты (3 буквы)
            name: Человекочитаемое название валюты
            symbol: Узкий символ валюты (например, '$', '€')
            country_code: ISO 3166 код страны для флага (например, 'US', 'EU')

        Raises:
            ValueError: При некорректных параметрах code или name
        """
        # Нормализация кода валюты в верхний регистр
        code = code.upper().strip()

        # Валидация формата кода (ровно 3 латинские буквы)
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Код валюты должен состоять из 3 букв: {code}")

        # Валидация непустого названия валюты
        if not name or not name.strip():
            raise ValueError("Название валюты не может быть пустым")

        self._code = code
        self._name = name.strip()
        self._symbol = symbol.strip() or code
        self._country_code = country_code.upper().strip()

    @property
    def code(self) -> str:
        return self._code

    @property
    def name(self) -> str:
        return self._name

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def country_code(self) -> str:
        return self._country_code

    def get_display_info(self) -> str:
        """Строка формата: "USD - US Dollar ($)"."""
        return f"{self.code} - {self.name} ({self.symbol})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code='{self.code}', name='{self.name}')"

    def __str__(self) -> str:
        return self.get_display_info()


# Приватный реестр данных поддерживаемых валют
_CURRENCY_REGISTRY: Dict[str, Dict[str, str]] = {
    "AED": {"name": "UAE Dirham", "symbol": "AED", "country": "AE"},
    "AUD": {"name": "Australian Dollar", "symbol": "$", "country": "AU"},
    "BRL": {"name": "Brazilian Real", "symbol": "R$", "country": "BR"},
    "CAD": {"name": "Canadian Dollar", "symbol": "$", "country": "CA"},
    "CHF": {"name": "Swiss Franc", "symbol": "CHF", "country": "CH"},
    "CNY": {"name": "Chinese Yuan", "symbol": "¥", "country": "CN"},
    "DKK": {"name": "Danish Krone", "symbol": "kr", "country": "DK"},
    "EUR": {"name": "Euro", "symbol": "€", "country": "EU"},
    "GBP": {"name": "British Pound", "symbol": "£", "country": "GB"},
    "HKD": {"name": "Hong Kong Dollar", "symbol": "$", "country": "HK"},
    "INR": {"name": "Indian Rupee", "symbol": "₹", "country": "IN"},
    "JPY": {"name": "Japanese Yen", "symbol": "¥", "country": "JP"},
    "KRW": {"name": "South Korean Won", "symbol": "₩", "country": "KR"},
    "MXN": {"name": "Mexican Peso", "symbol": "$", "country": "MX"},
    "NOK": {"name": "Norwegian Krone", "symbol": "kr", "country": "NO"},
    "NZD": {"name": "New Zealand Dollar", "symbol": "$", "country": "NZ"},
    "RUB": {"name": "Russian Ruble", "symbol": "₽", "country": "RU"},
    "SEK": {"name": "Swedish Krona", "symbol": "kr", "country": "SE"},
    "SGD": {"name": "Singapore Dollar", "symbol": "$", "country": "SG"},
    "TRY": {"name": "Turkish Lira", "symbol": "₺", "country": "TR"},
    "USD": {"name": "US Dollar", "symbol": "$", "country": "US"},
    "ZAR": {"name": "South African Rand", "symbol": "R", "country": "ZA"},
}

# Шаблон удаленного URL флага (используется если нет локального флага)
FLAG_URL_TEMPLATE: str = "https://flagcdn.com/w40/{country}.png"

# Страна по умолчанию для валют вне реестра
DEFAULT_FLAG_COUNTRY: str = "US"

# Кеш созданных объектов валют для избежания повторного создания
_CURRENCY_CACHE: Dict[str, Currency] = {}


def get_currency(code: str) -> Currency:
    """Фабричный метод для получения объекта валюты по коду.

    Args:
        code: Код валюты в любом регистре (например, 'usd', 'EUR')

    Returns:
        Объект Currency из реестра

    Raises:
        CurrencyNotFoundError: Если код валюты не поддерживается
    """
    # Нормализация кода валюты: верхний регистр, удаление пробелов
    normalized_code = str(code).upper().strip()

    # Проверка наличия валюты в реестре поддерживаемых
    if normalized_code not in _CURRENCY_REGISTRY:
        raise CurrencyNotFoundError(normalized_code)

    # Проверка наличия валюты в кеше созданных объектов
    if normalized_code in _CURRENCY_CACHE:
        return _CURRENCY_CACHE[normalized_code]

    currency_data = _CURRENCY_REGISTRY[normalized_code]
    currency = Currency(
        code=normalized_code,
        name=currency_data["name"],
        symbol=currency_data["symbol"],
        country_code=currency_data["country"],
    )

    # Сохранение созданного объекта в кеше для повторного использования
    _CURRENCY_CACHE[normalized_code] = currency
    return currency


def get_supported_currencies() -> list[str]:
    """Получить отсортированный список кодов всех поддерживаемых валют."""
    return sorted(_CURRENCY_REGISTRY.keys())


def is_supported_currency(code: Optional[str]) -> bool:
    """Строгая проверка кода валюты по реестру ISO кодов.

    Используется на уровне пользовательского ввода (CLI),
    в отличие от мягкой проверки формата в CacheStore.

    Args:
        code: Проверяемый код валюты

    Returns:
        True если код присутствует в реестре
    """
    if not isinstance(code, str):
        return False
    return code.strip().upper() in _CURRENCY_REGISTRY


def flag_url(code: str) -> str:
    """Получить URL флага для валюты.

    Args:
        code: Код валюты

    Returns:
        URL изображения флага страны эмиссии

    Note:
        Сначала используется локальная таблица валюта -> страна,
        для неизвестных валют применяется страна по умолчанию (US).
    """
    normalized_code = str(code).upper().strip()
    currency_data = _CURRENCY_REGISTRY.get(normalized_code)
    country = currency_data["country"] if currency_data else DEFAULT_FLAG_COUNTRY
    return FLAG_URL_TEMPLATE.format(country=country.lower())


class CurrencyLocalization:
    """Коллаборатор локализации: названия и символы валют.

    Оба метода никогда не пробрасывают исключения наружу:
    при любой ошибке возвращается исходный код валюты.
    """

    def __init__(self) -> None:
        self.logger: logging.Logger = logging.getLogger("parser.localization")

    def display_name(self, code: str) -> str:
        """Название валюты или сам код, если валюта неизвестна."""
        try:
            return get_currency(code).name
        except (CurrencyNotFoundError, ValueError) as e:
            self.logger.debug(f"Название для {code} не найдено: {e}")
            return code

    def symbol(self, code: str) -> str:
        """Символ валюты или сам код, если валюта неизвестна."""
        try:
            return get_currency(code).symbol
        except (CurrencyNotFoundError, ValueError) as e:
            self.logger.debug(f"Символ для {code} не найден: {e}")
            return code

    def flag_url(self, code: str) -> str:
        return flag_url(code)


__all__ = [
    "Currency",
    "CurrencyLocalization",
    "get_currency",
    "get_supported_currencies",
    "is_supported_currency",
    "flag_url",
]
