"""Модуль декораторов для ValutaWatch Hub."""

import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional, Tuple

# Параметры, которые попадают в контекст лога без изменений
_CONTEXT_PARAMS: Tuple[str, ...] = (
    "base_currency",
    "from_currency",
    "to_currency",
    "force_refresh",
    "amount",
)


def log_action(action: Optional[str] = None, verbose: bool = False) -> Callable:
    """Декоратор для логирования операций оркестраторов в логгер 'actions'.

    Args:
        action: Название операции (например, 'FETCH_RATES').
                Если не указано, используется имя функции в верхнем регистре.
        verbose: Режим детального логирования (время выполнения, результат).

    Returns:
        Декоратор, который оборачивает функцию логированием.

    Note:
        Исключения не глотаются: после записи в лог они пробрасываются дальше.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = logging.getLogger('actions')
            action_name = action or func.__name__.upper()

            # Контекст операции из аргументов функции
            log_context: Dict[str, Any] = {
                'action': action_name,
                **_extract_context(func, args, kwargs),
            }

            start_time = time.perf_counter()
            if verbose:
                logger.debug(f"Начало операции {action_name}", extra=log_context)

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log_context.update({
                    'result': 'ERROR',
                    'error_type': e.__class__.__name__,
                    'error_message': str(e),
                })
                # exc_info=verbose включает stacktrace только в verbose режиме
                logger.error(
                    f"Ошибка операции {action_name}: {e}",
                    extra=log_context,
                    exc_info=verbose,
                )
                raise

            log_context['result'] = 'OK'
            if verbose:
                log_context['execution_time'] = time.perf_counter() - start_time
                if result is not None:
                    log_context['result_value'] = str(result)[:200]

            logger.info(f"Операция {action_name} выполнена успешно", extra=log_context)
            return result

        return wrapper

    return decorator


def _extract_context(func: Callable, args: Tuple[Any, ...],
                     kwargs: Dict[str, Any]) -> Dict[str, Any]:
    """Извлечение контекста операции из аргументов декорируемой функции.

    Args:
        func: Декорируемая функция для анализа сигнатуры
        args: Позиционные аргументы функции
        kwargs: Именованные аргументы функции

    Returns:
        Словарь с кодами валют и флагами запроса
    """
    context: Dict[str, Any] = {}

    try:
        bound_args = inspect.signature(func).bind(*args, **kwargs)
        bound_args.apply_defaults()
    except (TypeError, ValueError) as e:
        logging.getLogger('actions').warning(
            f"Не удалось извлечь контекст для функции {func.__name__}: {e}"
        )
        return context

    for param_name, param_value in bound_args.arguments.items():
        if param_name in _CONTEXT_PARAMS:
            context[param_name] = param_value
        elif param_name in ('currency', 'base'):
            # Коды валют нормализуются для единообразия логов
            context[param_name] = (
                param_value.upper() if isinstance(param_value, str) else param_value
            )

    return context
