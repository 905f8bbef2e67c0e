"""
Ошибки клиента маркетплейса.

- SignatureInputError: некорректный набор параметров для подписи
- TransportError: сеть / таймаут / не-2xx ответ
- AuthorizationError: маркетплейс отклонил code или refresh_token
- ApplicationError: ответ 2xx, но code != "0" (возвращается как данные)
"""

from __future__ import annotations

from typing import Any, Optional


class MarketplaceError(Exception):
    pass


class SignatureInputError(MarketplaceError, ValueError):
    pass


class TransportError(MarketplaceError):
    def __init__(
        self,
        message: str,
        path: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.path = path
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        parts = [super().__str__(), f"path={self.path}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.body:
            parts.append(f"body={self.body[:500]}")
        return " ".join(parts)


class AuthorizationError(MarketplaceError):
    def __init__(self, detail: str, payload: Optional[dict] = None):
        super().__init__(detail)
        self.detail = detail
        self.payload = payload or {}


class ApplicationError(MarketplaceError):
    def __init__(self, path: str, code: Any, message: Optional[str], payload: dict):
        super().__init__(f"{path}: code={code} message={message}")
        self.path = path
        self.code = code
        self.message = message
        self.payload = payload
