"""
Модуль SnapshotStorage - долговременное хранение снимка кэша в JSON.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict


class StorageError(Exception):
    """Исключение для ошибок записи снимка кэша.

    Attributes:
        message: Текстовое описание ошибки
        operation: Название операции вызвавшей ошибку
    """

    def __init__(self, message: str, operation: str = "unknown") -> None:
        full_message: str = f"Ошибка хранилища в операции {operation}: {message}"
        super().__init__(full_message)
        self.operation = operation  # Сохранение операции для отладки


class SnapshotStorage:
    """Хранилище снимка состояния кэша под одним пространством имен.

    Файл содержит объект {"<namespace>": {...состояние...}}.
    Отсутствующий или поврежденный файл читается как пустое состояние.
    """

    # Пространство имен по умолчанию для состояния кэша
    DEFAULT_NAMESPACE: str = "currencies-store"

    def __init__(
        self,
        filepath: str = "data/currencies-store.json",
        namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        """Инициализация хранилища снимка.

        Args:
            filepath: Путь к JSON файлу снимка
            namespace: Ключ верхнего уровня, под которым лежит состояние

        Raises:
            StorageError: Если не удается создать директорию для файла
        """
        self.filepath: Path = Path(filepath)
        self.namespace: str = namespace
        self.logger: logging.Logger = logging.getLogger("parser.storage")

        # Создание директории если она не существует
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Не удалось создать директорию: {e}", operation="init"
            ) from e

        self.logger.debug(f"Хранилище снимка инициализировано: {self.filepath}")

    def load(self) -> Dict[str, Any]:
        """Прочитать сохраненное состояние.

        Returns:
            Словарь состояния или пустой словарь, если файла нет
            либо он поврежден
        """
        if not self.filepath.exists():
            self.logger.info(f"Снимок кэша не найден, пустое состояние: {self.filepath}")
            return {}

        try:
            with open(self.filepath, "r", encoding="utf-8") as f:
                file_data: Any = json.load(f)
        except json.JSONDecodeError as e:
            # Поврежденный JSON - не фатально
            self.logger.error(f"Ошибка парсинга JSON снимка кэша: {e}")
            return {}
        except OSError as e:
            self.logger.error(f"Ошибка чтения снимка кэша: {e}")
            return {}

        # Проверка структуры: объект с нашим пространством имен
        if not isinstance(file_data, dict):
            self.logger.warning("Некорректная структура снимка, используется пустое состояние")
            return {}

        state = file_data.get(self.namespace)
        if not isinstance(state, dict):
            self.logger.warning(
                f"Пространство имен '{self.namespace}' отсутствует в снимке"
            )
            return {}

        return state

    def save(self, state: Dict[str, Any]) -> None:
        """Атомарно записать состояние через временный файл.

        Args:
            state: Сериализуемое в JSON состояние кэша

        Raises:
            StorageError: При ошибках записи или проверки целостности

        Note:
            Паттерн: backup -> запись во временный файл -> проверка ->
            атомарное переименование; при сбое файл восстанавливается из backup.
        """
        temp_filepath: Path = self.filepath.with_suffix(".tmp")
        backup_filepath: Path = self.filepath.with_suffix(".backup")

        try:
            # 1. Создание backup существующего файла
            if self.filepath.exists():
                shutil.copy2(self.filepath, backup_filepath)

            # 2. Запись данных во временный файл
            with open(temp_filepath, "w", encoding="utf-8") as f:
                json.dump(
                    {self.namespace: state},
                    f,
                    indent=2,
                    ensure_ascii=False,
                )

            # 3. Проверка что записанный файл читается
            with open(temp_filepath, "r", encoding="utf-8") as f:
                json.load(f)

            # 4. Атомарное переименование временного файла в основной
            temp_filepath.replace(self.filepath)

            if backup_filepath.exists():
                backup_filepath.unlink(missing_ok=True)

            self.logger.debug(f"Снимок кэша записан атомарно: {self.filepath}")

        except (OSError, TypeError, ValueError) as e:
            self.logger.error(f"Ошибка атомарной записи снимка: {e}")

            # Восстановление из backup при ошибке
            if backup_filepath.exists():
                backup_filepath.replace(self.filepath)
                self.logger.info("Снимок кэша восстановлен из backup")

            temp_filepath.unlink(missing_ok=True)

            raise StorageError(
                f"Ошибка атомарной записи снимка: {e}", operation="save"
            ) from e

    def clear(self) -> None:
        """Удалить файл снимка (полный сброс состояния)."""
        self.filepath.unlink(missing_ok=True)
        self.logger.info(f"Снимок кэша удален: {self.filepath}")


__all__ = [
    "StorageError",
    "SnapshotStorage",
]
