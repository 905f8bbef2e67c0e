# sellerhub/services/dispatcher.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from sellerhub.core.config import settings
from sellerhub.core.errors import ApplicationError
from sellerhub.services.signer import SIGN_METHOD, sign, timestamp_ms
from sellerhub.services.transport import send

logger = logging.getLogger(__name__)

# маркетплейс отдаёт code строкой или числом
SUCCESS_CODES = ("0", 0)


@dataclass(frozen=True)
class ApiResponse:
    path: str
    payload: dict

    @property
    def code(self) -> Any:
        return self.payload.get("code")

    @property
    def message(self) -> Optional[str]:
        return self.payload.get("message")

    @property
    def data(self) -> Any:
        return self.payload.get("data")

    @property
    def ok(self) -> bool:
        return self.code in SUCCESS_CODES

    @property
    def error(self) -> Optional[ApplicationError]:
        if self.ok:
            return None
        return ApplicationError(self.path, self.code, self.message, self.payload)

    def raise_for_code(self) -> "ApiResponse":
        err = self.error
        if err is not None:
            raise err
        return self


class SignedRequestDispatcher:
    """
    Общий путь для всех API, кроме токенов.
    Подписывается ВЕСЬ набор параметров (включая access_token),
    всё уходит одним GET в query string. Состояния между вызовами нет.
    """

    METHOD = "GET"

    def __init__(
        self,
        app_key: Optional[str] = None,
        app_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app_key = app_key or settings.marketplace_app_key
        self.app_secret = app_secret or settings.marketplace_app_secret
        self.base_url = base_url or settings.marketplace_api_base
        self.timeout = timeout or settings.request_timeout_sec
        self.transport = transport

    def build_params(
        self, api_path: str, access_token: str, extra_params: Optional[Mapping[str, str]] = None
    ) -> dict[str, str]:
        params = {
            "app_key": self.app_key,
            "timestamp": timestamp_ms(),
            "sign_method": SIGN_METHOD,
            "access_token": access_token,
            **(extra_params or {}),
        }
        params["sign"] = sign(api_path, params, self.app_secret)
        return params

    async def call(
        self, api_path: str, access_token: str, extra_params: Optional[Mapping[str, str]] = None
    ) -> ApiResponse:
        params = self.build_params(api_path, access_token, extra_params)
        logger.info("Signed call %s params=%s", api_path, sorted(k for k in params if k != "sign"))

        payload = await send(
            self.METHOD,
            self.base_url,
            api_path,
            params,
            timeout=self.timeout,
            transport=self.transport,
        )

        resp = ApiResponse(path=api_path, payload=payload)
        if not resp.ok:
            logger.warning("%s вернул code=%s message=%s", api_path, resp.code, resp.message)
        return resp
