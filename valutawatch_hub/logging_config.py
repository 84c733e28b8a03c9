"""Модуль конфигурации системы логирования ValutaWatch Hub."""

import json
import logging
import logging.handlers
from pathlib import Path
from typing import Any, Dict

from .infra.settings import ConfigError, SettingsLoader

# Стандартные атрибуты LogRecord, не попадающие в JSON как контекст
_STANDARD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "getMessage",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """Форматтер записей лога в JSON строку.

    Контекст, переданный через extra (например, из @log_action),
    добавляется в объект как отдельные поля.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Пользовательские атрибуты (action, currency, result, ...)
        for attr_name, attr_value in record.__dict__.items():
            if attr_name.startswith("_") or attr_name in _STANDARD_ATTRS:
                continue
            # Только значения, сериализуемые в JSON без преобразований
            if isinstance(attr_value, (str, int, float, bool, type(None))):
                log_data[attr_name] = attr_value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def _rotating_handler(
    path: Path, max_bytes: int, backup_count: int, formatter: logging.Formatter
) -> logging.handlers.RotatingFileHandler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """Основная функция настройки системы логирования.

    Параметры читаются из [tool.valutawatch] в pyproject.toml:
    log_format (detailed | json), log_level, log_max_size_mb,
    log_backup_count, logs_dir, log_console.

    Raises:
        ConfigError: При ошибках загрузки конфигурации
        RuntimeError: При критических ошибках настройки логирования
    """
    try:
        settings = SettingsLoader()

        log_format = settings.get("log_format", "detailed")
        log_level_name = str(settings.get("log_level", "INFO"))
        log_max_size_mb = int(settings.get("log_max_size_mb", 10))
        log_backup_count = int(settings.get("log_backup_count", 5))
        logs_dir = Path(settings.get("logs_dir", "logs"))
        log_console = bool(settings.get("log_console", False))

        log_level = getattr(logging, log_level_name.upper(), logging.INFO)

        logs_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # Повторный вызов не дублирует handlers
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        if log_format == "json":
            formatter: logging.Formatter = JSONFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
        else:
            formatter = logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )

        root_logger.addHandler(
            _rotating_handler(
                logs_dir / "valutawatch.log",
                log_max_size_mb * 1024 * 1024,
                log_backup_count,
                formatter,
            )
        )

        if log_console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        _setup_specialized_loggers(logs_dir, formatter, log_level)

        root_logger.info(
            f"Система логирования настроена: формат={log_format}, "
            f"уровень={log_level_name}, директория={logs_dir}"
        )

    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logging.error(
            f"Ошибка конфигурации логирования, используется базовый режим: {e}"
        )
        raise
    except Exception as e:
        logging.basicConfig(level=logging.INFO)
        logging.error(f"Критическая ошибка настройки логирования: {e}")
        raise RuntimeError(f"Не удалось настроить логирование: {e}") from e


def _setup_specialized_loggers(
    logs_dir: Path, formatter: logging.Formatter, log_level: int
) -> None:
    """Настройка специализированных логгеров.

    Args:
        logs_dir: Директория для хранения файлов логов
        formatter: Форматтер для записи логов
        log_level: Числовой уровень логирования
    """
    # Операции оркестраторов (FETCH_RATES, FETCH_TREND, FETCH_NEWS, CONVERT)
    actions_logger = logging.getLogger("actions")
    actions_logger.setLevel(log_level)
    actions_logger.propagate = False
    for handler in actions_logger.handlers[:]:
        actions_logger.removeHandler(handler)
    actions_logger.addHandler(
        _rotating_handler(logs_dir / "actions.log", 10 * 1024 * 1024, 5, formatter)
    )

    # Только ERROR и выше (CLI пишет сюда необработанные ошибки команд)
    errors_logger = logging.getLogger("errors")
    errors_logger.setLevel(logging.ERROR)
    errors_logger.propagate = False
    for handler in errors_logger.handlers[:]:
        errors_logger.removeHandler(handler)
    errors_logger.addHandler(
        _rotating_handler(logs_dir / "errors.log", 5 * 1024 * 1024, 3, formatter)
    )

    # Запросы к провайдерам и работа кэша (parser.api.*, parser.cache, parser.fetch.*)
    parser_logger = logging.getLogger("parser")
    parser_logger.setLevel(log_level)
    for handler in parser_logger.handlers[:]:
        parser_logger.removeHandler(handler)
    parser_logger.addHandler(
        _rotating_handler(logs_dir / "parser.log", 5 * 1024 * 1024, 3, formatter)
    )


__all__ = ["JSONFormatter", "setup_logging"]
