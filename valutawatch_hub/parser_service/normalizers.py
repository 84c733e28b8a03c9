"""
Модуль нормализации ответов провайдеров: курсы и новости.
"""

import logging
import math
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from valutawatch_hub.core.currencies import CurrencyLocalization
from valutawatch_hub.core.exceptions import UpstreamRejected
from valutawatch_hub.core.models import NewsRecord, RateRecord
from valutawatch_hub.core.utils import strip_markup, to_iso_timestamp

logger = logging.getLogger("parser.normalizer")

# Значения по умолчанию для неполных элементов ленты
DEFAULT_NEWS_TITLE: str = "Untitled"
DEFAULT_NEWS_SOURCE: str = "Google News"
DEFAULT_NEWS_DESCRIPTION: str = "Currency market update"
NEWS_LIMIT: int = 12


def _localize(call: Callable[[str], str], code: str) -> str:
    """Вызов коллаборатора локализации с откатом на код валюты."""
    try:
        value = call(code)
    except Exception as e:
        # Ошибка коллаборатора никогда не прерывает нормализацию
        logger.warning(f"Ошибка локализации для {code}: {e}")
        return code
    return value if isinstance(value, str) and value else code


def normalize_rates(
    raw_rates: Mapping[str, Any],
    base_currency: str,
    updated_at: Optional[str] = None,
    localization: Optional[CurrencyLocalization] = None,
    now: Optional[float] = None,
    require_data: bool = False,
) -> List[RateRecord]:
    """Преобразовать карту {код: курс} в отсортированный список RateRecord.

    Args:
        raw_rates: Сырые курсы провайдера относительно base_currency
        base_currency: Запрошенная базовая валюта
        updated_at: Время обновления у провайдера (по умолчанию текущее)
        localization: Коллаборатор названий, символов и флагов
        now: Текущее время в секундах POSIX (для updated_at по умолчанию)
        require_data: Требовать хотя бы один корректный курс от провайдера

    Returns:
        Список записей, по одной на код, отсортированный по коду;
        базовая валюта всегда присутствует с курсом 1

    Raises:
        UpstreamRejected: Если require_data и ни один курс не прошел проверку

    Note:
        Нечисловые, бесконечные и неположительные курсы пропускаются
        с предупреждением в логе.
    """
    localization = localization or CurrencyLocalization()
    timestamp: str = updated_at or to_iso_timestamp(now if now is not None else time.time())
    normalized_base: str = base_currency.strip().upper()

    records: Dict[str, RateRecord] = {}

    for code, raw_rate in raw_rates.items():
        currency = str(code).strip().upper()

        # Валидация числового значения курса
        try:
            rate = float(raw_rate)
        except (TypeError, ValueError):
            logger.warning(f"Некорректный тип курса для {currency}: {raw_rate!r}")
            continue

        if not math.isfinite(rate) or rate <= 0:
            logger.warning(f"Некорректное значение курса для {currency}: {rate}")
            continue

        # Один код - одна запись (первое вхождение побеждает)
        if currency in records:
            logger.warning(f"Повторный код валюты в ответе проигнорирован: {currency}")
            continue

        # Базовая валюта всегда имеет курс ровно 1
        if currency == normalized_base and rate != 1:
            logger.warning(
                f"Курс базовой валюты {currency} равен {rate}, используется 1"
            )
            rate = 1.0

        records[currency] = _build_rate_record(currency, rate, timestamp, localization)

    if require_data and not records:
        raise UpstreamRejected(
            f"провайдер не вернул ни одного корректного курса к {normalized_base}"
        )

    # Синтез записи базовой валюты, если провайдер ее не вернул
    if normalized_base not in records:
        records[normalized_base] = _build_rate_record(
            normalized_base, 1.0, timestamp, localization
        )

    # Сортировка по коду (порядковое сравнение строк)
    return [records[code] for code in sorted(records)]


def _build_rate_record(
    currency: str,
    rate: float,
    updated_at: str,
    localization: CurrencyLocalization,
) -> RateRecord:
    return RateRecord(
        id=currency,
        currency=currency,
        currency_name=_localize(localization.display_name, currency),
        symbol=_localize(localization.symbol, currency),
        rate=rate,
        flag=_localize(localization.flag_url, currency),
        updated_at=updated_at,
    )


def _text(value: Any) -> str:
    """Строковое значение поля или пустая строка."""
    return value.strip() if isinstance(value, str) else ""


def normalize_news(
    items: List[Any],
    currency: str,
    now: Optional[float] = None,
    limit: int = NEWS_LIMIT,
) -> List[NewsRecord]:
    """Преобразовать элементы RSS ленты в список NewsRecord.

    Args:
        items: Сырые элементы ленты (title, link, author, pubDate, description)
        currency: Код валюты, к которой относится лента
        now: Текущее время в секундах POSIX (для published_at по умолчанию)
        limit: Максимальное количество новостей

    Returns:
        Список новостей, отсортированный по убыванию published_at
    """
    now_iso: str = to_iso_timestamp(now if now is not None else time.time())

    # 1. Отбор элементов, у которых есть заголовок или ссылка
    usable: List[Dict[str, Any]] = [
        item
        for item in items
        if isinstance(item, dict) and (_text(item.get("title")) or _text(item.get("link")))
    ][:limit]

    news: List[NewsRecord] = []
    seen_ids: set[str] = set()

    for index, item in enumerate(usable):
        link = _text(item.get("link"))
        record_id = f"{currency}-{link or index}"

        # Одна и та же ссылка дважды - одна новость
        if record_id in seen_ids:
            logger.debug(f"Повторная новость пропущена: {record_id}")
            continue
        seen_ids.add(record_id)

        description = strip_markup(_text(item.get("description")))

        news.append(
            NewsRecord(
                id=record_id,
                title=_text(item.get("title")) or DEFAULT_NEWS_TITLE,
                link=link,
                source=_text(item.get("author")) or DEFAULT_NEWS_SOURCE,
                published_at=_text(item.get("pubDate")) or now_iso,
                description=description or DEFAULT_NEWS_DESCRIPTION,
                currency=currency,
            )
        )

    # 2. Сортировка по убыванию даты публикации (строковое сравнение ISO)
    news.sort(key=lambda record: record.published_at, reverse=True)

    logger.debug(f"Нормализовано {len(news)} новостей для {currency}")
    return news


__all__ = [
    "normalize_rates",
    "normalize_news",
    "DEFAULT_NEWS_TITLE",
    "DEFAULT_NEWS_SOURCE",
    "DEFAULT_NEWS_DESCRIPTION",
    "NEWS_LIMIT",
]
