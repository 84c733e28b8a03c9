"""Основной пакет ValutaWatch Hub - курсы валют, тренды и новости с кэшированием."""

# Импорт и инициализация системы логирования при загрузке пакета
try:
    from .logging_config import setup_logging

    setup_logging()
except Exception as e:
    # Fallback: базовая настройка логирования если основная не сработала
    import logging

    logging.basicConfig(level=logging.INFO)
    logging.error(f"Не удалось инициализировать систему логирования: {e}")

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
