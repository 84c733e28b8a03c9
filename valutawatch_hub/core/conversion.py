"""
Модуль конвертации валют через общую опорную карту курсов.
"""

import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

from .currencies import CurrencyLocalization
from .exceptions import MissingRate
from .models import RateRecord

# "<сумма> <AAA> in|to <BBB>", регистр не важен
_QUERY_PATTERN = re.compile(
    r"^([0-9]*\.?[0-9]+)\s+([a-z]{3})\s+(?:in|to)\s+([a-z]{3})$", re.IGNORECASE
)


@dataclass(frozen=True)
class ConversionQuery:
    """Разобранный текстовый запрос конвертации."""

    amount: float
    from_currency: str
    to_currency: str


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    rate_map: Mapping[str, float],
) -> float:
    """Конвертировать сумму между валютами через опорную валюту.

    Args:
        amount: Сумма в исходной валюте
        from_currency: Код исходной валюты
        to_currency: Код целевой валюты
        rate_map: Курсы валют относительно одной общей опорной валюты

    Returns:
        Сумма в целевой валюте (без округления)

    Raises:
        MissingRate: Если одной из валют нет в rate_map
                     или курс исходной валюты равен 0
    """
    from_rate = rate_map.get(from_currency)
    to_rate = rate_map.get(to_currency)

    if from_rate is None or to_rate is None or from_rate == 0:
        raise MissingRate(from_currency, to_currency)

    # Сумма в опорной валюте, затем пересчет в целевую
    amount_in_reference = amount / from_rate
    return amount_in_reference * to_rate


def build_rate_map(records: Iterable[RateRecord]) -> Dict[str, float]:
    """Построить карту {код: курс} из нормализованных записей курсов."""
    return {record.currency: record.rate for record in records}


def parse_conversion_query(value: str) -> Optional[ConversionQuery]:
    """Разобрать запрос вида "100 usd in zar".

    Args:
        value: Текст запроса пользователя

    Returns:
        ConversionQuery или None если текст не соответствует формату
    """
    # Схлопывание пробелов перед сопоставлением с шаблоном
    clean_value = " ".join(value.split())
    if not clean_value:
        return None

    match = _QUERY_PATTERN.match(clean_value)
    if match is None:
        return None

    amount = float(match.group(1))
    if not math.isfinite(amount) or amount < 0:
        return None

    return ConversionQuery(
        amount=amount,
        from_currency=match.group(2).upper(),
        to_currency=match.group(3).upper(),
    )


def format_amount(
    amount: float,
    currency: str,
    localization: Optional[CurrencyLocalization] = None,
) -> str:
    """Отформатировать сумму для вывода: "R 1,800.00" или "1,800.00 XYZ".

    Note:
        Если символ валюты неизвестен (совпадает с кодом),
        код выводится после суммы.
    """
    localization = localization or CurrencyLocalization()
    symbol = localization.symbol(currency)

    if symbol == currency:
        return f"{amount:,.2f} {currency}"
    return f"{symbol} {amount:,.2f}"


__all__ = [
    "ConversionQuery",
    "convert",
    "build_rate_map",
    "parse_conversion_query",
    "format_amount",
]
