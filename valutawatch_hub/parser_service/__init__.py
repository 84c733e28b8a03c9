"""
Пакет Parser Service для платформы ValutaWatch Hub.
"""

from valutawatch_hub.core.exceptions import TransportError, UpstreamRejected

# Экспорт клиентов провайдеров, кэша и оркестраторов
from .api_clients import (
    BaseApiClient,  # Общая обработка HTTP статусов и JSON
    NewsApiClient,  # rss2json поверх Google News
    RatesApiClient,  # Последние курсы к базовой валюте
    RequestsHttpFetcher,  # HTTP коллаборатор на requests
    TrendApiClient,  # История курсов за период
)
from .cache_store import CacheError, CacheStore
from .config import ParserConfig, config
from .fetchers import (
    CurrencyService,
    FetchResult,
    FetchSource,
    NewsFetcher,
    RatesFetcher,
    TrendFetcher,
)

__all__ = [
    "TransportError",
    "UpstreamRejected",
    "BaseApiClient",
    "RatesApiClient",
    "TrendApiClient",
    "NewsApiClient",
    "RequestsHttpFetcher",
    "CacheStore",
    "CacheError",
    "ParserConfig",
    "config",
    "FetchSource",
    "FetchResult",
    "RatesFetcher",
    "TrendFetcher",
    "NewsFetcher",
    "CurrencyService",
]
