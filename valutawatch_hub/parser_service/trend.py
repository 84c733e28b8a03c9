"""
Модуль построения 7-дневного тренда валютной пары по разреженной истории.
"""

import logging
import math
from bisect import bisect_right
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from valutawatch_hub.core.exceptions import TrendDataUnavailable
from valutawatch_hub.core.models import TrendPoint
from valutawatch_hub.core.utils import add_days, format_short_label, to_iso_date

logger = logging.getLogger("parser.trend")

TREND_POINTS: int = 7  # Дней в ряду (сегодня включительно)
TREND_LOOKBACK_DAYS: int = 14  # Глубина запроса истории

RatesByDate = Mapping[str, Mapping[str, Any]]


def _finite_rate(rates_by_date: RatesByDate, day: str, currency: str) -> Optional[float]:
    """Конечное числовое значение курса валюты за дату или None."""
    value = rates_by_date.get(day, {}).get(currency)

    # bool - подкласс int, но не является курсом
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def resolve_rate_for_date(
    currency: str,
    target_date: str,
    rates_by_date: RatesByDate,
    sorted_dates: List[str],
    base_currency: str,
) -> float:
    """Курс валюты на дату по ближайшей доступной дате.

    Args:
        currency: Код валюты
        target_date: Целевая дата YYYY-MM-DD
        rates_by_date: Разреженная таблица {дата: {валюта: курс}}
        sorted_dates: Даты таблицы, отсортированные по возрастанию
        base_currency: Базовая валюта таблицы

    Returns:
        1 для базовой валюты; иначе курс на последнюю дату <= target_date,
        а если такой нет - курс на самую раннюю дату с данными

    Raises:
        TrendDataUnavailable: Если валюта не встречается в таблице
    """
    # 1. Базовая валюта - курс ровно 1 без поиска
    if currency == base_currency:
        return 1.0

    # 2. Последняя дата <= target_date (бинарный поиск), затем назад
    #    до первой даты, где у валюты есть значение
    position = bisect_right(sorted_dates, target_date)
    for day in reversed(sorted_dates[:position]):
        rate = _finite_rate(rates_by_date, day, currency)
        if rate is not None:
            return rate

    # 3. Целевая дата раньше всех данных - самый ранний известный курс
    for day in sorted_dates:
        rate = _finite_rate(rates_by_date, day, currency)
        if rate is not None:
            return rate

    # 4. Валюта ни разу не встречается
    raise TrendDataUnavailable(currency)


def trend_window(today: date, lookback_days: int = TREND_LOOKBACK_DAYS) -> Tuple[str, str]:
    """Период запроса истории: (today - lookback_days, today) в ISO."""
    return to_iso_date(add_days(today, -lookback_days)), to_iso_date(today)


def requested_symbols(from_currency: str, to_currency: str, base_currency: str) -> List[str]:
    """Валюты для запроса истории: {from, to} без базовой, по алфавиту."""
    return sorted({from_currency, to_currency} - {base_currency})


def build_trend_series(
    rates_by_date: RatesByDate,
    from_currency: str,
    to_currency: str,
    base_currency: str,
    today: date,
    points: int = TREND_POINTS,
) -> List[TrendPoint]:
    """Собрать ряд из points дней, заканчивающийся сегодняшней датой UTC.

    Args:
        rates_by_date: Разреженная таблица истории от провайдера
        from_currency: Исходная валюта пары
        to_currency: Целевая валюта пары
        base_currency: Базовая валюта таблицы
        today: Сегодняшняя дата UTC
        points: Количество точек (по умолчанию 7)

    Returns:
        Список TrendPoint со строго возрастающими датами

    Raises:
        TrendDataUnavailable: Если таблица пуста или одна из валют
                              в ней не встречается (частичный ряд не возвращается)
    """
    # Даты сортируются один раз на весь ряд
    sorted_dates: List[str] = sorted(rates_by_date.keys())

    if not sorted_dates:
        logger.error("Провайдер истории не вернул ни одной даты")
        raise TrendDataUnavailable()

    series: List[TrendPoint] = []

    for index in range(points):
        day = add_days(today, -(points - 1 - index))
        iso_day = to_iso_date(day)

        series.append(
            TrendPoint(
                date=iso_day,
                label=format_short_label(day),
                from_rate=resolve_rate_for_date(
                    from_currency, iso_day, rates_by_date, sorted_dates, base_currency
                ),
                to_rate=resolve_rate_for_date(
                    to_currency, iso_day, rates_by_date, sorted_dates, base_currency
                ),
            )
        )

    logger.debug(
        f"Построен тренд {from_currency}->{to_currency} (база {base_currency}): "
        f"{series[0].date}..{series[-1].date}"
    )
    return series


__all__ = [
    "TREND_POINTS",
    "TREND_LOOKBACK_DAYS",
    "resolve_rate_for_date",
    "trend_window",
    "requested_symbols",
    "build_trend_series",
]
