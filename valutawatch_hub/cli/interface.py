"""
CLI интерфейс платформы.
"""

import argparse  # Для парсинга аргументов командной строки
import logging
import sys  # Для работы с системными аргументами
from typing import Callable, Optional

from prettytable import PrettyTable  # Для красивого вывода таблиц

from valutawatch_hub.core.conversion import format_amount, parse_conversion_query
from valutawatch_hub.core.currencies import (
    get_supported_currencies,
    is_supported_currency,
)
from valutawatch_hub.core.exceptions import (
    CurrencyNotFoundError,
    TransportError,
    ValutaWatchError,
)
from valutawatch_hub.core.utils import relative_time_label
from valutawatch_hub.infra.persistence import SnapshotStorage, StorageError
from valutawatch_hub.parser_service.cache_store import CacheStore
from valutawatch_hub.parser_service.config import config
from valutawatch_hub.parser_service.fetchers import (
    CurrencyService,
    FetchSource,
    filter_rates,
)

errors_logger = logging.getLogger("errors")

# Фабрика сервиса; подменяется в тестах
ServiceFactory = Callable[[], CurrencyService]


def build_service() -> CurrencyService:
    """Собрать сервис с кэшем, сохраняемым в снимок на диске."""
    store = CacheStore(
        storage=SnapshotStorage(filepath=config.SNAPSHOT_FILE_PATH),
        base_currency=config.BASE_CURRENCY,
    )
    return CurrencyService(store)


def safe_execute_command(command_func, *args, **kwargs):
    """Безопасное выполнение CLI команд с обработкой ошибок."""
    try:
        return command_func(*args, **kwargs)
    except KeyboardInterrupt:
        print("\nОперация прервана пользователем")
        sys.exit(0)
    except CurrencyNotFoundError as e:
        print(f"Ошибка: {e}")
        print(f"Поддерживаемые валюты: {', '.join(get_supported_currencies())}")
        sys.exit(1)
    except TransportError as e:
        print(f"Ошибка: {e}")
        print("Пожалуйста, повторите попытку позже или проверьте подключение к сети.")
        sys.exit(1)
    except (ValutaWatchError, StorageError, ValueError) as e:
        # Ошибки провайдеров, нормализации и ввода
        errors_logger.error(f"Команда {command_func.__name__} завершилась ошибкой: {e}")
        print(f"Ошибка: {e}")
        sys.exit(1)


def create_parser() -> argparse.ArgumentParser:
    """Создать парсер аргументов командной строки."""
    parser = argparse.ArgumentParser(
        description="ValutaWatch CLI: курсы валют, тренды и новости"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # rates
    rates = subparsers.add_parser("rates", help="Курсы всех валют к базовой")
    rates.add_argument("--base", help="Базовая валюта (по умолчанию сохраненная)")
    rates.add_argument("--search", default="", help="Фильтр по коду, названию, символу")
    rates.add_argument("--force", action="store_true", help="Игнорировать кэш")

    # convert "100 usd in zar"
    conv = subparsers.add_parser("convert", help='Конвертация: "100 USD in ZAR"')
    conv.add_argument("query", nargs="+", help="Сумма, исходная валюта, in|to, целевая")
    conv.add_argument("--base", help="Базовая валюта курсов")
    conv.add_argument("--force", action="store_true", help="Игнорировать кэш")

    # trend
    trend = subparsers.add_parser("trend", help="Тренд пары за 7 дней")
    trend.add_argument("--from", dest="from_currency", required=True)
    trend.add_argument("--to", dest="to_currency", required=True)
    trend.add_argument("--base", help="Базовая валюта истории")
    trend.add_argument("--force", action="store_true", help="Игнорировать кэш")

    # news
    news = subparsers.add_parser("news", help="Новости по валюте")
    news.add_argument("--currency", default="USD")
    news.add_argument("--force", action="store_true", help="Игнорировать кэш")

    # set-base
    set_base = subparsers.add_parser("set-base", help="Сохранить базовую валюту")
    set_base.add_argument("code", help="ISO код валюты (например, EUR)")

    # cache-info / clear-cache
    subparsers.add_parser("cache-info", help="Состояние кэша")
    subparsers.add_parser("clear-cache", help="Очистить кэш (базовая валюта сохраняется)")

    return parser


def cli_rates(
    service: CurrencyService,
    base: Optional[str] = None,
    search: str = "",
    force: bool = False,
) -> None:
    """CLI-команда показа курсов с фильтрацией."""
    base_code = service.rates.resolve_base(base)
    result = service.rates.fetch_result(base_code, force_refresh=force)
    rows = filter_rates(result.data, search)

    if not rows:
        print(f"Курс для '{search}' не найден.")
        return

    table = PrettyTable()
    table.field_names = ["Код", "Валюта", "Символ", "Курс"]
    table.align["Код"] = "l"
    table.align["Валюта"] = "l"
    table.align["Символ"] = "c"
    table.align["Курс"] = "r"

    for record in rows:
        table.add_row(
            [record.currency, record.currency_name, record.symbol, f"{record.rate:,.4f}"]
        )

    source = "кэш" if result.source is FetchSource.CACHE else "провайдер"
    print(f"Курсы (база: {base_code}, источник: {source}):")
    print(table)
    print(relative_time_label(rows[0].updated_at, service.store.now()))

    if search.strip():
        print(f"Найдено {len(rows)} курсов по фильтру '{search}'.")


def cli_convert(
    service: CurrencyService,
    query: str,
    base: Optional[str] = None,
    force: bool = False,
) -> None:
    """CLI-команда конвертации по текстовому запросу."""
    parsed = parse_conversion_query(query)
    if parsed is None:
        raise ValueError(f"Не удалось разобрать запрос '{query}'. Пример: 100 USD in ZAR")

    converted = service.convert(
        parsed.amount,
        parsed.from_currency,
        parsed.to_currency,
        base_currency=base,
        force_refresh=force,
    )

    print(
        f"{format_amount(parsed.amount, parsed.from_currency)} = "
        f"{format_amount(converted, parsed.to_currency)}"
    )


def cli_trend(
    service: CurrencyService,
    from_currency: str,
    to_currency: str,
    base: Optional[str] = None,
    force: bool = False,
) -> None:
    """CLI-команда тренда пары за последние 7 дней."""
    series = service.trend.fetch(from_currency, to_currency, base, force_refresh=force)

    source = from_currency.strip().upper()
    target = to_currency.strip().upper()

    table = PrettyTable()
    table.field_names = ["Дата", "День", source, target, f"{source}→{target}"]
    table.align["Дата"] = "l"

    for point in series:
        cross_rate = point.to_rate / point.from_rate if point.from_rate else 0.0
        table.add_row(
            [
                point.date,
                point.label,
                f"{point.from_rate:,.4f}",
                f"{point.to_rate:,.4f}",
                f"{cross_rate:,.4f}",
            ]
        )

    print(f"Тренд {source}→{target} за {len(series)} дней:")
    print(table)


def cli_news(service: CurrencyService, currency: str = "USD", force: bool = False) -> None:
    """CLI-команда новостей по валюте."""
    items = service.news.fetch(currency, force_refresh=force)

    if not items:
        print(f"Новостей по {currency.upper()} не найдено.")
        return

    table = PrettyTable()
    table.field_names = ["Опубликовано", "Источник", "Заголовок"]
    table.align["Заголовок"] = "l"
    table.max_width["Заголовок"] = 70

    for item in items:
        table.add_row([item.published_at, item.source, item.title])

    print(f"Новости ({currency.upper() or 'USD'}):")
    print(table)


def cli_set_base(service: CurrencyService, code: str) -> None:
    """CLI-команда сохранения базовой валюты (строгая проверка по реестру)."""
    if not is_supported_currency(code):
        raise CurrencyNotFoundError(code)

    service.store.set_base_currency(code)
    print(f"Базовая валюта сохранена: {service.store.get_base_currency()}")


def cli_cache_info(service: CurrencyService) -> None:
    """CLI-команда состояния кэша."""
    info = service.store.get_cache_info()

    table = PrettyTable()
    table.field_names = ["Таблица", "Записей", "Свежих", "Ключи"]
    table.align["Ключи"] = "l"

    for name in ("rates", "trend", "news"):
        table_info = info[name]
        table.add_row(
            [
                name,
                table_info["entries"],
                table_info["fresh"],
                ", ".join(table_info["keys"]) or "-",
            ]
        )

    print(f"Базовая валюта: {info['base_currency']}")
    print(table)


def cli_clear_cache(service: CurrencyService) -> None:
    service.store.clear()
    print("Кэш очищен.")


def main(
    argv: Optional[list[str]] = None,
    service_factory: ServiceFactory = build_service,
) -> None:
    """Главная точка входа CLI."""
    if argv is None:
        argv = sys.argv

    if len(argv) == 1:
        print(
            "Доступные команды: rates, convert, trend, news, "
            "set-base, cache-info, clear-cache"
        )
        return

    parser = create_parser()
    args = parser.parse_args(argv[1:])

    service = safe_execute_command(service_factory)

    if args.command == "rates":
        safe_execute_command(cli_rates, service, args.base, args.search, args.force)

    elif args.command == "convert":
        safe_execute_command(
            cli_convert, service, " ".join(args.query), args.base, args.force
        )

    elif args.command == "trend":
        safe_execute_command(
            cli_trend,
            service,
            args.from_currency,
            args.to_currency,
            args.base,
            args.force,
        )

    elif args.command == "news":
        safe_execute_command(cli_news, service, args.currency, args.force)

    elif args.command == "set-base":
        safe_execute_command(cli_set_base, service, args.code)

    elif args.command == "cache-info":
        safe_execute_command(cli_cache_info, service)

    elif args.command == "clear-cache":
        safe_execute_command(cli_clear_cache, service)


if __name__ == "__main__":
    main()
