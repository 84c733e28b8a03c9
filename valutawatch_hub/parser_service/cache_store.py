"""
Модуль CacheStore - кэш курсов, трендов и новостей с TTL.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from valutawatch_hub.core.models import CacheEntry, NewsRecord, RateRecord, TrendPoint
from valutawatch_hub.infra.persistence import SnapshotStorage, StorageError

T = TypeVar("T")

# Имена таблиц кэша
RATES_TABLE: str = "rates"
TREND_TABLE: str = "trend"
NEWS_TABLE: str = "news"


class CacheError(Exception):
    """Исключение для ошибок работы кэша.

    Attributes:
        message: Текстовое описание ошибки
        operation: Название операции вызвавшей ошибку
    """

    def __init__(self, message: str, operation: str = "unknown") -> None:
        full_message: str = f"Ошибка кэша в операции {operation}: {message}"
        super().__init__(full_message)
        self.operation = operation  # Сохранение операции для отладки


def rates_key(base_currency: str) -> str:
    """Ключ таблицы курсов: код базовой валюты."""
    return base_currency.strip().upper()


def trend_key(base_currency: str, from_currency: str, to_currency: str) -> str:
    """Составной ключ таблицы трендов: "USD:EUR->ZAR"."""
    return (
        f"{base_currency.strip().upper()}:"
        f"{from_currency.strip().upper()}->{to_currency.strip().upper()}"
    )


def news_key(currency: str) -> str:
    """Ключ таблицы новостей: код валюты."""
    return currency.strip().upper()


class TTLTable(Generic[T]):
    """Таблица ключ -> CacheEntry со списком записей одного типа.

    Не потокобезопасна сама по себе: все вызовы сериализуются
    блокировкой владельца (CacheStore).
    """

    def __init__(self, name: str, decode: Callable[[Dict[str, Any]], T]) -> None:
        """Инициализация таблицы.

        Args:
            name: Имя таблицы для логов и снимка
            decode: Функция восстановления записи из словаря (для снимка)
        """
        self.name: str = name
        self._decode = decode
        self._entries: Dict[str, CacheEntry[List[T]]] = {}

    def get(self, key: str) -> Optional[CacheEntry[List[T]]]:
        return self._entries.get(key)

    def set(self, key: str, data: List[T], expires_at: float) -> None:
        # Поздняя запись всегда заменяет предыдущую
        self._entries[key] = CacheEntry(data=list(data), expires_at=expires_at)

    def purge(self, now: float) -> int:
        """Удалить записи с expires_at <= now; вернуть число удаленных."""
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def keys(self) -> List[str]:
        return sorted(self._entries.keys())

    def count_valid(self, now: float) -> int:
        return sum(1 for entry in self._entries.values() if entry.is_valid(now))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация таблицы для снимка."""
        return {
            key: {
                "key": key,
                "data": [item.to_dict() for item in entry.data],
                "expires_at": entry.expires_at,
            }
            for key, entry in self._entries.items()
        }

    def load_dict(self, raw: Dict[str, Any], logger: logging.Logger) -> int:
        """Восстановить записи из снимка, пропуская поврежденные.

        Returns:
            Количество восстановленных записей
        """
        loaded = 0
        for key, raw_entry in raw.items():
            try:
                data = [self._decode(item) for item in raw_entry["data"]]
                expires_at = float(raw_entry["expires_at"])
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Поврежденная запись {self.name}[{key}] пропущена: {e}")
                continue

            self._entries[str(key)] = CacheEntry(data=data, expires_at=expires_at)
            loaded += 1
        return loaded


class CacheStore:
    """Процессный кэш трех независимых таблиц и предпочитаемой базовой валюты."""

    DEFAULT_BASE_CURRENCY: str = "USD"

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        storage: Optional[SnapshotStorage] = None,
        autosave: bool = True,
        base_currency: str = DEFAULT_BASE_CURRENCY,
    ) -> None:
        """Инициализация кэша.

        Args:
            clock: Источник текущего времени в секундах POSIX
            storage: Хранилище снимка (None - только память)
            autosave: Сохранять снимок после каждого изменения
            base_currency: Базовая валюта до загрузки снимка

        Note:
            При наличии storage состояние восстанавливается сразу,
            поврежденный снимок трактуется как пустое состояние.
        """
        self.logger: logging.Logger = logging.getLogger("parser.cache")
        self._clock = clock
        self._storage = storage
        self._autosave = autosave
        self._lock = threading.RLock()

        self._tables: Dict[str, TTLTable[Any]] = {
            RATES_TABLE: TTLTable(RATES_TABLE, RateRecord.from_dict),
            TREND_TABLE: TTLTable(TREND_TABLE, TrendPoint.from_dict),
            NEWS_TABLE: TTLTable(NEWS_TABLE, NewsRecord.from_dict),
        }
        # Счетчики поколений запросов по (таблица, ключ)
        self._generations: Dict[Tuple[str, str], int] = {}
        self._base_currency: str = base_currency.strip().upper() or self.DEFAULT_BASE_CURRENCY

        if self._storage is not None:
            self.load()

        self.logger.info(f"Кэш инициализирован, базовая валюта: {self._base_currency}")

    def now(self) -> float:
        """Текущее время по часам кэша."""
        return self._clock()

    def get(self, table: str, key: str) -> Optional[CacheEntry[Any]]:
        """Получить запись без изменения состояния.

        Args:
            table: Имя таблицы (rates, trend, news)
            key: Ключ записи

        Returns:
            CacheEntry или None. Свежесть проверяет вызывающая сторона.

        Raises:
            CacheError: Если таблица неизвестна
        """
        with self._lock:
            return self._table(table, "get").get(key)

    def set(
        self,
        table: str,
        key: str,
        data: List[Any],
        ttl: float,
        token: Optional[int] = None,
    ) -> bool:
        """Сохранить данные с TTL, заменяя предыдущую запись ключа.

        Args:
            table: Имя таблицы
            key: Ключ записи
            data: Список записей (RateRecord, TrendPoint или NewsRecord)
            ttl: Время жизни в секундах (expires_at = now + ttl)
            token: Поколение запроса из begin_request() (опционально)

        Returns:
            True если запись применена, False если токен устарел

        Raises:
            CacheError: Если таблица неизвестна
            ValueError: Если ttl отрицательный
        """
        if ttl < 0:
            raise ValueError(f"TTL не может быть отрицательным: {ttl}")

        with self._lock:
            target = self._table(table, "set")

            # Ответ устаревшего запроса не перезаписывает более новый
            if token is not None and token != self._generations.get((table, key), 0):
                self.logger.info(
                    f"Результат устаревшего запроса {table}[{key}] отброшен "
                    f"(поколение {token})"
                )
                return False

            expires_at = self.now() + ttl
            target.set(key, data, expires_at)
            self.logger.debug(
                f"Запись {table}[{key}] сохранена: {len(data)} элементов, TTL {ttl} сек"
            )
            self._autosave_snapshot()
            return True

    def begin_request(self, table: str, key: str) -> int:
        """Зарегистрировать новый запрос к ключу и вернуть его поколение."""
        with self._lock:
            self._table(table, "begin_request")
            generation = self._generations.get((table, key), 0) + 1
            self._generations[(table, key)] = generation
            return generation

    def purge_expired(self) -> int:
        """Удалить во всех таблицах записи с expires_at <= now.

        Returns:
            Общее количество удаленных записей
        """
        with self._lock:
            now = self.now()
            removed = sum(table.purge(now) for table in self._tables.values())

            if removed:
                self.logger.debug(f"Удалено {removed} устаревших записей кэша")
                self._autosave_snapshot()
            return removed

    def set_base_currency(self, code: Any) -> None:
        """Установить предпочитаемую базовую валюту.

        Args:
            code: Код валюты; пустые и нестроковые значения игнорируются

        Note:
            Проверяется только формат (непустая строка). Строгая проверка
            по реестру ISO кодов выполняется на уровне ввода (CLI).
        """
        if not isinstance(code, str) or not code.strip():
            self.logger.warning(f"Некорректный код базовой валюты проигнорирован: {code!r}")
            return

        with self._lock:
            self._base_currency = code.strip().upper()
            self.logger.info(f"Базовая валюта изменена: {self._base_currency}")
            self._autosave_snapshot()

    def get_base_currency(self) -> str:
        with self._lock:
            return self._base_currency or self.DEFAULT_BASE_CURRENCY

    def get_cache_info(self) -> Dict[str, Any]:
        """Информация о состоянии кэша для CLI и логов."""
        with self._lock:
            now = self.now()
            info: Dict[str, Any] = {
                "base_currency": self.get_base_currency(),
                "persistent": self._storage is not None,
            }
            for name, table in self._tables.items():
                keys = table.keys()
                info[name] = {
                    "entries": len(keys),
                    "keys": keys,
                    "fresh": table.count_valid(now),
                }
            return info

    def clear(self) -> None:
        """Полностью очистить все таблицы.

        Базовая валюта и счетчики поколений запросов сохраняются.
        """
        with self._lock:
            for table in self._tables.values():
                table.clear()
            self.logger.info("Кэш полностью очищен")
            self._autosave_snapshot()

    def snapshot(self) -> Dict[str, Any]:
        """Сериализуемое состояние кэша."""
        with self._lock:
            state: Dict[str, Any] = {"base_currency": self._base_currency}
            for name, table in self._tables.items():
                state[f"{name}_cache"] = table.to_dict()
            return state

    def load(self) -> None:
        """Восстановить состояние из хранилища снимка.

        Note:
            Отсутствующее, поврежденное или частично поврежденное
            состояние никогда не приводит к ошибке.
        """
        if self._storage is None:
            return

        state = self._storage.load()

        with self._lock:
            base_currency = state.get("base_currency")
            if isinstance(base_currency, str) and base_currency.strip():
                self._base_currency = base_currency.strip().upper()

            total = 0
            for name, table in self._tables.items():
                raw_table = state.get(f"{name}_cache")
                if isinstance(raw_table, dict):
                    total += table.load_dict(raw_table, self.logger)

            self.logger.info(f"Восстановлено {total} записей кэша из снимка")

    def save(self) -> None:
        """Записать снимок состояния в хранилище.

        Raises:
            StorageError: При ошибке записи
        """
        if self._storage is None:
            return
        self._storage.save(self.snapshot())

    def _autosave_snapshot(self) -> None:
        """Автосохранение снимка; ошибки записи не фатальны."""
        if self._storage is None or not self._autosave:
            return
        try:
            self.save()
        except StorageError as e:
            self.logger.error(f"Не удалось сохранить снимок кэша: {e}")

    def _table(self, name: str, operation: str) -> TTLTable[Any]:
        try:
            return self._tables[name]
        except KeyError:
            raise CacheError(f"Неизвестная таблица кэша: {name}", operation=operation) from None


__all__ = [
    "CacheError",
    "CacheStore",
    "TTLTable",
    "RATES_TABLE",
    "TREND_TABLE",
    "NEWS_TABLE",
    "rates_key",
    "trend_key",
    "news_key",
]
