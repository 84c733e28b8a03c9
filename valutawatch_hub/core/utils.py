"""Утилиты дат и текста: UTC календарь, подписи, очистка разметки."""

import re
from datetime import date, datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

# Фиксированные английские сокращения месяцев (не зависят от локали ОС)
MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def utc_today(now: float) -> date:
    """Календарная дата UTC для момента времени.

    Args:
        now: Время в секундах POSIX

    Returns:
        Дата UTC (полночь "сегодня")
    """
    return datetime.fromtimestamp(now, tz=timezone.utc).date()


def add_days(value: date, amount: int) -> date:
    """Сдвинуть дату на amount дней (может быть отрицательным)."""
    return value + timedelta(days=amount)


def to_iso_date(value: date) -> str:
    """Дата в формате YYYY-MM-DD."""
    return value.isoformat()


def to_iso_timestamp(now: float) -> str:
    """Момент времени в ISO-8601 UTC с суффиксом Z.

    Args:
        now: Время в секундах POSIX

    Returns:
        Строка вида "2024-01-01T00:00:00.000Z"
    """
    moment = datetime.fromtimestamp(now, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def format_short_label(value: date) -> str:
    """Короткая подпись даты для графика: "Jan 5"."""
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.day}"


def strip_markup(value: str) -> str:
    """Удалить HTML теги и схлопнуть пробельные символы.

    Args:
        value: Исходный текст (например, description из RSS)

    Returns:
        Очищенный текст без тегов и лишних пробелов
    """
    without_tags = _TAG_PATTERN.sub(" ", value)
    return _WHITESPACE_PATTERN.sub(" ", without_tags).strip()


def relative_time_label(updated_at: Optional[str], now: float) -> str:
    """Подпись "Updated N minutes ago" для времени обновления курсов.

    Args:
        updated_at: Время обновления (ISO-8601 или RFC 2822 от провайдера)
        now: Текущее время в секундах POSIX

    Returns:
        Строка с относительным временем, "Updated recently" если
        время не удалось разобрать
    """
    if not updated_at:
        return "Updated recently"

    updated = _parse_timestamp(updated_at)
    if updated is None:
        return "Updated recently"

    diff_seconds = max(0, int(now - updated.timestamp()))

    if diff_seconds < 60:
        suffix = "" if diff_seconds == 1 else "s"
        return f"Updated {diff_seconds} second{suffix} ago"

    diff_minutes = diff_seconds // 60
    if diff_minutes < 60:
        suffix = "" if diff_minutes == 1 else "s"
        return f"Updated {diff_minutes} minute{suffix} ago"

    diff_hours = diff_minutes // 60
    suffix = "" if diff_hours == 1 else "s"
    return f"Updated {diff_hours} hour{suffix} ago"


def _parse_timestamp(value: str) -> Optional[datetime]:
    """Разбор ISO-8601 или RFC 2822 (формат open.er-api.com)."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        try:
            parsed = parsedate_to_datetime(value)
        except (ValueError, TypeError, IndexError):
            return None

    # Время без зоны трактуется как UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
