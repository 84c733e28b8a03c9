"""
tests/fakes.py - Тестовые двойники: HTTP коллаборатор, ответы и часы.
"""

from typing import Any, Dict, List, Optional, Tuple

# Момент 2024-01-07 12:00:00 UTC (сегодня для тестов тренда)
NOW: float = 1704628800.0


class FakeResponse:
    """Ответ с заданным статусом и payload."""

    def __init__(self, payload: Any = None, status_code: int = 200,
                 invalid_json: bool = False) -> None:
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def json(self) -> Any:
        if self.invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeHttpFetcher:
    """HTTP коллаборатор с маршрутами по префиксу URL.

    Значение маршрута - FakeResponse или исключение, которое будет выброшено.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[Tuple[str, Dict[str, str]]] = []

    def fetch(self, url: str, params: Optional[Dict[str, str]] = None) -> FakeResponse:
        self.calls.append((url, dict(params or {})))

        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response

        return FakeResponse(status_code=404)


class FakeClock:
    """Управляемые часы для CacheStore."""

    def __init__(self, start: float = NOW) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def rates_payload(rates: Dict[str, Any],
                  updated_at: str = "2024-01-01T00:00:00Z") -> Dict[str, Any]:
    """Ответ провайдера курсов в формате open.er-api.com."""
    return {
        "result": "success",
        "base_code": "USD",
        "time_last_update_utc": updated_at,
        "rates": rates,
    }
