"""Модуль пользовательских исключений для ValutaWatch Hub."""


class ValutaWatchError(Exception):
    """Базовый класс для всех пользовательских исключений пакета.

    Используется для централизованной обработки ошибок на границе
    оркестраторов и в CLI.
    """
    pass


class TransportError(ValutaWatchError):
    """Исключение при сбое HTTP транспорта (не-2xx статус или сетевая ошибка).

    Attributes:
        status_code: HTTP статус код ответа (None для сетевых ошибок)
        url: Адрес запроса, вызвавшего ошибку
    """

    def __init__(self, status_code: int | None, url: str = "", detail: str = ""):
        """Инициализация исключения транспорта.

        Args:
            status_code: HTTP статус код ответа или None
            url: URL запроса (для логов)
            detail: Дополнительное описание причины
        """
        self._status_code = status_code
        self._url = url

        # Формирование сообщения с учетом наличия статус кода
        if status_code is not None:
            message = f"Запрос завершился со статусом {status_code}"
        else:
            message = "Сетевая ошибка при обращении к внешнему API"

        if detail:
            message += f": {detail}"
        if url:
            message += f" ({url})"

        super().__init__(message)

    @property
    def status_code(self) -> int | None:
        """Получить HTTP статус код ответа.

        Returns:
            Статус код или None, если ответ не был получен
        """
        return self._status_code

    @property
    def url(self) -> str:
        """Адрес запроса."""
        return self._url


class UpstreamRejected(ValutaWatchError):
    """Исключение при логическом отказе внешнего API.

    HTTP запрос успешен, но payload сигнализирует об ошибке
    (поле result != "success"), имеет неожиданную структуру
    или не содержит пригодных данных.

    Attributes:
        reason: Описание причины отказа
    """

    def __init__(self, reason: str):
        # Пустая причина заменяется общей формулировкой
        self._reason = (reason or "").strip() or "неизвестная причина"
        super().__init__(f"Внешний API отклонил запрос: {self._reason}")

    @property
    def reason(self) -> str:
        return self._reason


class TrendDataUnavailable(ValutaWatchError):
    """Исключение при отсутствии исторических данных для валюты.

    Attributes:
        currency: Код валюты, которая не встречается в окне данных
                  (None если провайдер не вернул ни одной даты)
    """

    def __init__(self, currency: str | None = None):
        """Инициализация исключения.

        Args:
            currency: Код валюты или None для запроса целиком
        """
        self._currency = currency

        if currency is None:
            message = "Провайдер не вернул исторических данных о курсах"
        else:
            message = f"Исторические данные недоступны для валюты '{currency}'"

        super().__init__(message)

    @property
    def currency(self) -> str | None:
        return self._currency


class MissingRate(ValutaWatchError):
    """Исключение при конвертации без необходимого курса.

    Возникает если одной из валют нет в карте курсов
    или курс исходной валюты равен нулю.

    Attributes:
        from_currency: Исходная валюта
        to_currency: Целевая валюта
    """

    def __init__(self, from_currency: str, to_currency: str):
        self._from_currency = from_currency
        self._to_currency = to_currency
        super().__init__(
            f"Нет данных о курсе для пары {from_currency} -> {to_currency}"
        )

    @property
    def from_currency(self) -> str:
        return self._from_currency

    @property
    def to_currency(self) -> str:
        return self._to_currency


class FetchCancelled(ValutaWatchError):
    """Исключение при отмене запроса вызывающей стороной.

    Результат отмененного запроса никогда не записывается в кэш.

    Attributes:
        key: Ключ кэша, для которого выполнялся запрос
    """

    def __init__(self, key: str):
        self._key = key
        super().__init__(f"Запрос для ключа '{key}' отменен, результат отброшен")

    @property
    def key(self) -> str:
        return self._key


class CurrencyNotFoundError(ValutaWatchError):
    """Исключение при запросе неизвестной/неподдерживаемой валюты.

    Attributes:
        code: Код валюты, который не был найден в реестре
    """

    def __init__(self, code: str):
        # Сохранение кода валюты как атрибута исключения
        self.code = code
        super().__init__(f"Неизвестная валюта '{code}'")
