"""Публичный API CLI модуля ValutaWatch Hub."""

from .interface import (
    build_service,  # Сервис с кэшем на диске
    create_parser,  # Основной парсер аргументов
    main,  # Точка входа CLI
)

__all__ = [
    "build_service",
    "create_parser",
    "main",
]
