"""
Модуль оркестраторов загрузки: кэш или запрос к провайдеру.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from valutawatch_hub.core.conversion import build_rate_map, convert
from valutawatch_hub.core.currencies import CurrencyLocalization
from valutawatch_hub.core.exceptions import FetchCancelled, ValutaWatchError
from valutawatch_hub.core.models import NewsRecord, RateRecord, TrendPoint
from valutawatch_hub.core.utils import utc_today
from valutawatch_hub.decorators import log_action

from .api_clients import HttpFetcher, NewsApiClient, RatesApiClient, TrendApiClient
from .cache_store import (
    NEWS_TABLE,
    RATES_TABLE,
    TREND_TABLE,
    CacheStore,
    news_key,
    rates_key,
    trend_key,
)
from .config import ParserConfig, config
from .normalizers import normalize_news, normalize_rates
from .trend import build_trend_series, requested_symbols, trend_window


class FetchSource(Enum):
    """Откуда получены данные."""

    CACHE = "cache"
    REMOTE = "remote"


@dataclass
class FetchResult:
    """Результат оркестратора: данные и их происхождение."""

    data: List[Any]
    source: FetchSource
    key: str
    expires_at: Optional[float]  # None если запись была вытеснена новым запросом


def filter_rates(records: List[RateRecord], query: str) -> List[RateRecord]:
    """Курсы, у которых код, название или символ содержат query (без учета регистра)."""
    needle = query.strip().lower()
    if not needle:
        return list(records)

    return [
        record
        for record in records
        if needle in record.currency.lower()
        or needle in record.currency_name.lower()
        or needle in record.symbol.lower()
    ]


class BaseFetcher:
    """Общий автомат: PURGE -> CHECK_CACHE -> HIT | FETCH -> NORMALIZE -> STORE."""

    table: str = ""

    def __init__(self, store: CacheStore, ttl: float, name: str) -> None:
        """Инициализация оркестратора.

        Args:
            store: Общий кэш
            ttl: Время жизни записей в секундах
            name: Имя для логгера (parser.fetch.<name>)
        """
        self.store = store
        self.ttl = ttl
        self.logger = logging.getLogger(f"parser.fetch.{name}")

    def resolve_base(self, base_currency: Optional[str]) -> str:
        """Явная базовая валюта или предпочитаемая из кэша."""
        if base_currency and base_currency.strip():
            return base_currency.strip().upper()
        return self.store.get_base_currency()

    def _run(
        self,
        key: str,
        loader: Callable[[], List[Any]],
        force_refresh: bool,
        cancel_event: Optional[threading.Event],
    ) -> FetchResult:
        """Выполнить цикл кэш-или-запрос для ключа.

        Args:
            key: Ключ таблицы кэша
            loader: Загрузка и нормализация данных у провайдера
            force_refresh: Пропустить проверку кэша (запись в кэш сохраняется)
            cancel_event: Флаг отмены; если установлен к моменту ответа,
                          результат отбрасывается

        Returns:
            FetchResult с данными из кэша или от провайдера

        Raises:
            ValutaWatchError: Ошибки провайдера/нормализации (кэш не меняется)
            FetchCancelled: Если запрос отменен вызывающей стороной
        """
        # 1. Ленивое удаление устаревших записей перед любым чтением
        self.store.purge_expired()

        # 2. Проверка кэша (истекшая запись равносильна промаху)
        if not force_refresh:
            entry = self.store.get(self.table, key)
            if entry is not None and entry.is_valid(self.store.now()):
                self.logger.debug(f"Попадание в кэш {self.table}[{key}]")
                return FetchResult(
                    data=list(entry.data),
                    source=FetchSource.CACHE,
                    key=key,
                    expires_at=entry.expires_at,
                )

        # 3. Запрос к провайдеру
        self.logger.info(
            f"Запрос {self.table}[{key}] у провайдера"
            + (" (принудительное обновление)" if force_refresh else "")
        )
        token = self.store.begin_request(self.table, key)

        try:
            data = loader()
        except ValutaWatchError as e:
            # Существующая запись кэша остается нетронутой
            self.logger.error(f"Ошибка загрузки {self.table}[{key}]: {e}")
            raise

        # 4. Отмененный вызывающей стороной запрос не меняет кэш
        if cancel_event is not None and cancel_event.is_set():
            self.logger.warning(f"Запрос {self.table}[{key}] отменен, результат отброшен")
            raise FetchCancelled(key)

        # 5. Запись в кэш (отклоняется, если начат более новый запрос)
        applied = self.store.set(self.table, key, data, self.ttl, token=token)
        entry = self.store.get(self.table, key) if applied else None

        return FetchResult(
            data=data,
            source=FetchSource.REMOTE,
            key=key,
            expires_at=entry.expires_at if entry is not None else None,
        )


class RatesFetcher(BaseFetcher):
    """Оркестратор курсов всех валют к базовой."""

    table = RATES_TABLE

    def __init__(
        self,
        store: CacheStore,
        client: Optional[RatesApiClient] = None,
        localization: Optional[CurrencyLocalization] = None,
        ttl: Optional[float] = None,
    ) -> None:
        super().__init__(
            store, ttl if ttl is not None else config.RATES_TTL_SECONDS, "rates"
        )
        self.client = client or RatesApiClient()
        self.localization = localization or CurrencyLocalization()

    @log_action(action="FETCH_RATES")
    def fetch_result(
        self,
        base_currency: Optional[str] = None,
        force_refresh: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> FetchResult:
        base = self.resolve_base(base_currency)

        def load() -> List[RateRecord]:
            raw = self.client.fetch_latest(base)
            return normalize_rates(
                raw.rates,
                base,
                updated_at=raw.updated_at,
                localization=self.localization,
                now=self.store.now(),
                require_data=True,
            )

        return self._run(rates_key(base), load, force_refresh, cancel_event)

    def fetch(
        self,
        base_currency: Optional[str] = None,
        force_refresh: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[RateRecord]:
        """Курсы к базовой валюте (из кэша, пока запись свежая).

        Args:
            base_currency: Базовая валюта (по умолчанию предпочитаемая)
            force_refresh: Игнорировать кэш и запросить провайдера
            cancel_event: Флаг отмены запроса

        Returns:
            Отсортированный по коду список RateRecord

        Raises:
            TransportError: При HTTP/сетевых ошибках
            UpstreamRejected: Если провайдер отклонил запрос
        """
        return self.fetch_result(base_currency, force_refresh, cancel_event).data

    def search(
        self, query: str, base_currency: Optional[str] = None
    ) -> List[RateRecord]:
        """Фильтр курсов по подстроке кода, названия или символа.

        Пустой запрос возвращает все курсы.
        """
        return filter_rates(self.fetch(base_currency), query)

    def rate_map(
        self, base_currency: Optional[str] = None, force_refresh: bool = False
    ) -> Dict[str, float]:
        """Карта {код: курс} для конвертации."""
        return build_rate_map(self.fetch(base_currency, force_refresh))


class TrendFetcher(BaseFetcher):
    """Оркестратор 7-дневного тренда валютной пары."""

    table = TREND_TABLE

    def __init__(
        self,
        store: CacheStore,
        client: Optional[TrendApiClient] = None,
        ttl: Optional[float] = None,
        points: Optional[int] = None,
        lookback_days: Optional[int] = None,
    ) -> None:
        super().__init__(
            store, ttl if ttl is not None else config.TREND_TTL_SECONDS, "trend"
        )
        self.client = client or TrendApiClient()
        self.points = points or config.TREND_POINTS
        self.lookback_days = lookback_days or config.TREND_LOOKBACK_DAYS

    @log_action(action="FETCH_TREND")
    def fetch_result(
        self,
        from_currency: str,
        to_currency: str,
        base_currency: Optional[str] = None,
        force_refresh: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> FetchResult:
        source = from_currency.strip().upper()
        target = to_currency.strip().upper()
        base = self.resolve_base(base_currency)

        def load() -> List[TrendPoint]:
            today = utc_today(self.store.now())
            start_date, end_date = trend_window(today, self.lookback_days)
            rates_by_date = self.client.fetch_history(
                start_date, end_date, base, requested_symbols(source, target, base)
            )
            return build_trend_series(
                rates_by_date, source, target, base, today, self.points
            )

        return self._run(trend_key(base, source, target), load, force_refresh, cancel_event)

    def fetch(
        self,
        from_currency: str,
        to_currency: str,
        base_currency: Optional[str] = None,
        force_refresh: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[TrendPoint]:
        """Ряд из 7 точек для пары from -> to относительно базовой валюты.

        Raises:
            TransportError: При HTTP/сетевых ошибках
            UpstreamRejected: При неожиданной структуре ответа
            TrendDataUnavailable: Если истории нет или валюта в ней не встречается
        """
        return self.fetch_result(
            from_currency, to_currency, base_currency, force_refresh, cancel_event
        ).data


class NewsFetcher(BaseFetcher):
    """Оркестратор новостей по валюте."""

    table = NEWS_TABLE

    def __init__(
        self,
        store: CacheStore,
        client: Optional[NewsApiClient] = None,
        ttl: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> None:
        super().__init__(
            store, ttl if ttl is not None else config.NEWS_TTL_SECONDS, "news"
        )
        self.client = client or NewsApiClient()
        self.limit = limit or config.NEWS_LIMIT

    @log_action(action="FETCH_NEWS")
    def fetch_result(
        self,
        currency: str,
        force_refresh: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> FetchResult:
        # Пустой код валюты - новости по USD
        code = currency.strip().upper() or "USD"

        def load() -> List[NewsRecord]:
            items = self.client.fetch_items(code)
            return normalize_news(items, code, now=self.store.now(), limit=self.limit)

        return self._run(news_key(code), load, force_refresh, cancel_event)

    def fetch(
        self,
        currency: str,
        force_refresh: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[NewsRecord]:
        """Новости по валюте, по убыванию даты публикации."""
        return self.fetch_result(currency, force_refresh, cancel_event).data


class CurrencyService:
    """Точка сборки: общий кэш и три оркестратора."""

    def __init__(
        self,
        store: CacheStore,
        http: Optional[HttpFetcher] = None,
        api_config: Optional[ParserConfig] = None,
        localization: Optional[CurrencyLocalization] = None,
    ) -> None:
        """Инициализация сервиса.

        Args:
            store: Общий кэш (создается один раз на процесс)
            http: HTTP коллаборатор для всех клиентов
            api_config: Конфигурация эндпоинтов и TTL
            localization: Коллаборатор названий и символов
        """
        api_config = api_config or config
        self.store = store
        self.rates = RatesFetcher(
            store,
            RatesApiClient(http=http, api_config=api_config),
            localization=localization,
            ttl=api_config.RATES_TTL_SECONDS,
        )
        self.trend = TrendFetcher(
            store,
            TrendApiClient(http=http, api_config=api_config),
            ttl=api_config.TREND_TTL_SECONDS,
            points=api_config.TREND_POINTS,
            lookback_days=api_config.TREND_LOOKBACK_DAYS,
        )
        self.news = NewsFetcher(
            store,
            NewsApiClient(http=http, api_config=api_config),
            ttl=api_config.NEWS_TTL_SECONDS,
            limit=api_config.NEWS_LIMIT,
        )

    @log_action(action="CONVERT")
    def convert(
        self,
        amount: float,
        from_currency: str,
        to_currency: str,
        base_currency: Optional[str] = None,
        force_refresh: bool = False,
    ) -> float:
        """Конвертировать сумму по актуальным курсам к базовой валюте.

        Raises:
            MissingRate: Если одной из валют нет среди курсов
        """
        rate_map = self.rates.rate_map(base_currency, force_refresh)
        return convert(
            amount, from_currency.strip().upper(), to_currency.strip().upper(), rate_map
        )


__all__ = [
    "FetchSource",
    "FetchResult",
    "filter_rates",
    "BaseFetcher",
    "RatesFetcher",
    "TrendFetcher",
    "NewsFetcher",
    "CurrencyService",
]
