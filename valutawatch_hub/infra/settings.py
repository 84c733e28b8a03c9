"""Модуль SettingsLoader - синглтон для управления конфигурацией проекта."""

import copy
import threading
import tomllib
from pathlib import Path
from typing import Any, Optional


class ConfigError(Exception):
    """Пользовательское исключение для ошибок загрузки конфигурации.

    Attributes:
        message: Описание ошибки конфигурации
    """

    def __init__(self, message: str):
        super().__init__(message)


class SettingsLoader:
    """Синглтон для загрузки конфигурации из pyproject.toml.

    Конфигурация загружается из секции [tool.valutawatch] ближайшего
    pyproject.toml вверх по иерархии директорий от текущей рабочей.

    Note:
        Если pyproject.toml не найден (пакет установлен и запущен
        вне репозитория), используется пустая конфигурация и все
        значения берутся из default в вызовах get().
    """

    # Имя секции внутри [tool]
    SECTION: str = "valutawatch"

    _instance: Optional['SettingsLoader'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'SettingsLoader':
        """Реализация паттерна Singleton через переопределение __new__."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                # Флаг инициализации для контроля однократного вызова __init__
                cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """Приватный инициализатор синглтона (вызывается один раз).

        Raises:
            ConfigError: При ошибках парсинга конфигурации
        """
        if self._initialized:
            return

        # Поиск файла конфигурации (None если не найден)
        self._config_path: Optional[Path] = self._find_config_file()
        self._config: Optional[dict] = None

        self._load_config()
        self._initialized = True

    def get(self, key: str, default: Any = None) -> Any:
        """Получить значение настройки по ключу с поддержкой вложенных ключей.

        Args:
            key: Ключ настройки (например, 'data_dir' или 'ttl.rates_seconds')
            default: Значение по умолчанию, если ключ не найден

        Returns:
            Значение настройки или default
        """
        keys = key.split('.')
        value = self._config

        # Поиск значения по вложенным ключам
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def reload(self) -> None:
        """Перезагрузить конфигурацию из файла pyproject.toml."""
        self._config_path = self._find_config_file()
        self._load_config()

    @property
    def config_path(self) -> Optional[Path]:
        return self._config_path

    @property
    def all_settings(self) -> dict:
        """Глубокая копия всех настроек секции [tool.valutawatch].

        Raises:
            RuntimeError: Если конфигурация не была загружена
        """
        if self._config is None:
            raise RuntimeError("Конфигурация не была загружена")

        return copy.deepcopy(self._config)

    def _find_config_file(self) -> Optional[Path]:
        """Найти pyproject.toml в иерархии директорий от cwd вверх."""
        current_dir = Path.cwd()

        # Поднимаемся вверх по иерархии директорий (включая корень)
        for directory in (current_dir, *current_dir.parents):
            config_file = directory / "pyproject.toml"
            if config_file.exists():
                return config_file

        return None

    def _load_config(self) -> None:
        """Загрузить и распарсить секцию [tool.valutawatch].

        Raises:
            ConfigError: При ошибках чтения файла или парсинга TOML
        """
        if self._config_path is None:
            self._config = {}
            return

        try:
            # Открытие файла в бинарном режиме для tomllib
            with open(self._config_path, "rb") as file:
                config = tomllib.load(file)
        except FileNotFoundError:
            raise ConfigError(f"Файл конфигурации не найден: {self._config_path}")
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Ошибка парсинга TOML файла: {e}")

        # Чужой pyproject.toml без нашей секции - пустая конфигурация
        self._config = config.get('tool', {}).get(self.SECTION, {})
