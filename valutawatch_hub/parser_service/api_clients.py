"""
Модуль API клиентов для Parser Service.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urlencode

import requests

from valutawatch_hub.core.exceptions import TransportError, UpstreamRejected
from .config import ParserConfig, config


class HttpResponse(Protocol):
    """Минимальный интерфейс HTTP ответа, которым пользуется ядро."""

    status_code: int

    def json(self) -> Any:
        ...


class HttpFetcher(Protocol):
    """HTTP коллаборатор: fetch(url) -> ответ со статусом и json()."""

    def fetch(self, url: str, params: Optional[Dict[str, str]] = None) -> HttpResponse:
        ...


class RequestsHttpFetcher:
    """HTTP коллаборатор на основе requests с повтором при таймаутах."""

    def __init__(
        self,
        timeout: int = 10,
        max_retries: int = 1,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Инициализация HTTP коллаборатора.

        Args:
            timeout: Таймаут запроса в секундах (по умолчанию 10)
            max_retries: Количество повторных попыток при таймауте
            session: Сессия requests (по умолчанию создается новая)
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()
        self.logger = logging.getLogger("parser.http")

    def fetch(
        self, url: str, params: Optional[Dict[str, str]] = None
    ) -> requests.Response:
        """Выполнить HTTP GET запрос с повторными попытками при таймауте.

        Args:
            url: URL адрес для выполнения запроса
            params: Словарь параметров запроса (опционально)

        Returns:
            Объект ответа requests (статус не проверяется)

        Raises:
            TransportError: При таймауте после всех попыток или сетевой ошибке
        """
        # Итерация по количеству попыток (основная + retries)
        for attempt in range(self.max_retries + 1):
            try:
                self.logger.debug(
                    f"Попытка запроса {attempt + 1}: {url} с параметрами {params}"
                )

                return self.session.get(
                    url,
                    params=params,
                    timeout=self.timeout,
                    headers={"User-Agent": "ValutaWatchHub/1.0"},
                )

            except requests.exceptions.Timeout as e:
                # Исчерпаны все попытки - выбрасываем исключение
                if attempt == self.max_retries:
                    raise TransportError(
                        None, url, f"таймаут запроса ({self.timeout} секунд)"
                    ) from e
                self.logger.warning(
                    f"Таймаут, повторная попытка ({attempt + 1}/{self.max_retries})"
                )

            except requests.exceptions.RequestException as e:
                # Сетевые ошибки (connection error, SSL error и т.д.)
                raise TransportError(None, url, str(e)) from e

        # Недостижимо: цикл либо возвращает ответ, либо выбрасывает исключение
        raise TransportError(None, url, "неожиданная ошибка в fetch()")


@dataclass(frozen=True)
class RawRates:
    """Сырые курсы от провайдера до нормализации."""

    rates: Dict[str, Any]  # {код: курс} относительно базовой валюты
    updated_at: Optional[str]  # Время обновления у провайдера (если есть)


class BaseApiClient:
    """Базовый класс клиентов внешних API."""

    def __init__(
        self,
        name: str,
        http: Optional[HttpFetcher] = None,
        api_config: Optional[ParserConfig] = None,
    ) -> None:
        """Инициализация API клиента.

        Args:
            name: Название клиента для логирования (например, "Rates")
            http: HTTP коллаборатор (по умолчанию RequestsHttpFetcher)
            api_config: Конфигурация эндпоинтов (по умолчанию глобальный config)
        """
        self.name = name
        self.config: ParserConfig = api_config or config
        self.http: HttpFetcher = http or RequestsHttpFetcher(
            timeout=self.config.REQUEST_TIMEOUT_SECONDS,
            max_retries=self.config.MAX_RETRIES,
        )
        # Логгер с префиксом 'parser.' для интеграции в систему логирования
        self.logger = logging.getLogger(f"parser.{name.lower()}")

    def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        """Выполнить запрос и вернуть разобранный JSON.

        Args:
            url: URL адрес запроса
            params: Параметры запроса

        Returns:
            Разобранный payload ответа

        Raises:
            TransportError: При не-2xx статусе или сетевой ошибке
            UpstreamRejected: Если тело ответа не является JSON
        """
        response = self.http.fetch(url, params)

        # Любой не-2xx статус - ошибка транспорта
        if not 200 <= response.status_code < 300:
            self.logger.error(f"{self.name}: статус {response.status_code} для {url}")
            raise TransportError(response.status_code, url)

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamRejected(f"{self.name}: некорректный JSON в ответе - {e}") from e

        self.logger.debug(f"Получен ответ от {self.name}: {len(str(payload))} байт")
        return payload


class RatesApiClient(BaseApiClient):
    """Клиент курсов всех валют к базовой (формат open.er-api.com)."""

    def __init__(
        self,
        http: Optional[HttpFetcher] = None,
        api_config: Optional[ParserConfig] = None,
    ) -> None:
        super().__init__(name="Rates", http=http, api_config=api_config)

    def fetch_latest(self, base_currency: str) -> RawRates:
        """Получить актуальные курсы относительно базовой валюты.

        Args:
            base_currency: Код базовой валюты (например, "USD")

        Returns:
            RawRates с картой курсов и временем обновления

        Raises:
            TransportError: При HTTP/сетевых ошибках
            UpstreamRejected: Если result != "success" или rates не словарь
        """
        url = f"{self.config.RATES_API_URL}/{base_currency}"
        payload = self._get_json(url)

        if not isinstance(payload, dict):
            raise UpstreamRejected("ответ курсов не является объектом")

        # Явный статус провайдера, отличный от success - логический отказ
        result = payload.get("result")
        if result is not None and result != "success":
            raise UpstreamRejected(
                f"API курсов вернул result={result!r} "
                f"({payload.get('error-type', 'unknown')})"
            )

        rates = payload.get("rates", {})
        if not isinstance(rates, dict):
            raise UpstreamRejected("поле rates должно быть объектом")

        updated_at = payload.get("time_last_update_utc") or payload.get("date")

        self.logger.info(f"{self.name}: получено {len(rates)} курсов к {base_currency}")
        return RawRates(
            rates=rates,
            updated_at=str(updated_at) if updated_at else None,
        )


class TrendApiClient(BaseApiClient):
    """Клиент исторических курсов (формат api.frankfurter.app)."""

    def __init__(
        self,
        http: Optional[HttpFetcher] = None,
        api_config: Optional[ParserConfig] = None,
    ) -> None:
        super().__init__(name="Trend", http=http, api_config=api_config)

    def fetch_history(
        self,
        start_date: str,
        end_date: str,
        base_currency: str,
        symbols: List[str],
    ) -> Dict[str, Dict[str, Any]]:
        """Получить таблицу курсов дата -> валюта -> курс за период.

        Args:
            start_date: Начало периода (YYYY-MM-DD)
            end_date: Конец периода включительно (YYYY-MM-DD)
            base_currency: Базовая валюта провайдера
            symbols: Запрашиваемые валюты (без базовой)

        Returns:
            Разреженная таблица {дата: {валюта: курс}}

        Raises:
            TransportError: При HTTP/сетевых ошибках
            UpstreamRejected: При неожиданной структуре ответа
        """
        url = f"{self.config.TREND_API_URL}/{start_date}..{end_date}"
        params: Dict[str, str] = {"from": base_currency}
        if symbols:
            params["to"] = ",".join(symbols)

        payload = self._get_json(url, params)

        if not isinstance(payload, dict):
            raise UpstreamRejected("ответ истории курсов не является объектом")

        rates_by_date = payload.get("rates", {})
        if not isinstance(rates_by_date, dict):
            raise UpstreamRejected("поле rates истории должно быть объектом")

        # Даты с некорректной структурой отбрасываются, а не роняют запрос
        table: Dict[str, Dict[str, Any]] = {}
        for date_key, day_rates in rates_by_date.items():
            if isinstance(day_rates, dict):
                table[str(date_key)] = day_rates
            else:
                self.logger.warning(f"Некорректная структура курсов за {date_key}")

        self.logger.info(
            f"{self.name}: {len(table)} дат за период {start_date}..{end_date}"
        )
        return table


class NewsApiClient(BaseApiClient):
    """Клиент новостей по валюте (rss2json поверх поиска Google News)."""

    def __init__(
        self,
        http: Optional[HttpFetcher] = None,
        api_config: Optional[ParserConfig] = None,
    ) -> None:
        super().__init__(name="News", http=http, api_config=api_config)

    def build_rss_url(self, currency: str) -> str:
        """URL RSS поиска новостей: "<CODE> currency exchange rate"."""
        query = urlencode(
            {
                "q": f"{currency} currency exchange rate",
                "hl": "en-US",
                "gl": "US",
                "ceid": "US:en",
            }
        )
        return f"{self.config.NEWS_RSS_URL}?{query}"

    def fetch_items(self, currency: str) -> List[Any]:
        """Получить сырые элементы ленты новостей для валюты.

        Raises:
            TransportError: При HTTP/сетевых ошибках
            UpstreamRejected: При status != "ok" или items не список
        """
        payload = self._get_json(
            self.config.NEWS_API_URL, {"rss_url": self.build_rss_url(currency)}
        )

        if not isinstance(payload, dict):
            raise UpstreamRejected("ответ ленты новостей не является объектом")

        status = payload.get("status")
        if status is not None and status != "ok":
            raise UpstreamRejected(
                f"API новостей вернул status={status!r} ({payload.get('message', '')})"
            )

        items = payload.get("items", [])
        if not isinstance(items, list):
            raise UpstreamRejected("поле items должно быть списком")

        self.logger.info(f"{self.name}: {len(items)} элементов ленты для {currency}")
        return items


__all__ = [
    "HttpFetcher",
    "HttpResponse",
    "RequestsHttpFetcher",
    "RawRates",
    "BaseApiClient",
    "RatesApiClient",
    "TrendApiClient",
    "NewsApiClient",
]
