from .conversion import ConversionQuery, build_rate_map, convert, parse_conversion_query
from .currencies import Currency, CurrencyLocalization
from .currencies import get_currency, get_supported_currencies, is_supported_currency
from .exceptions import ValutaWatchError, TransportError, UpstreamRejected
from .exceptions import TrendDataUnavailable, MissingRate, FetchCancelled
from .exceptions import CurrencyNotFoundError
from .models import CacheEntry, NewsRecord, RateRecord, TrendPoint

__all__ = [
    # Модели данных
    "RateRecord",
    "TrendPoint",
    "NewsRecord",
    "CacheEntry",
    # Валюты
    "Currency",
    "CurrencyLocalization",
    "get_currency",
    "get_supported_currencies",
    "is_supported_currency",
    # Конвертация
    "ConversionQuery",
    "convert",
    "build_rate_map",
    "parse_conversion_query",
    # Исключения
    "ValutaWatchError",
    "TransportError",
    "UpstreamRejected",
    "TrendDataUnavailable",
    "MissingRate",
    "FetchCancelled",
    "CurrencyNotFoundError",
]
