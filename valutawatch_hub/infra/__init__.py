"""Пакет инфраструктурных компонентов ValutaWatch Hub."""

# Импорт SettingsLoader для доступа из других модулей
from .settings import SettingsLoader, ConfigError

# Импорт хранилища снимка кэша
from .persistence import SnapshotStorage, StorageError

__all__ = [
    "SettingsLoader",
    "ConfigError",
    "SnapshotStorage",
    "StorageError",
]
