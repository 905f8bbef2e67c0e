# sellerhub/services/tokens.py

from __future__ import annotations

import logging
from typing import Optional

import httpx

from sellerhub.core.config import settings
from sellerhub.core.crypto import mask_token
from sellerhub.services.signer import SIGN_METHOD, sign, timestamp_ms
from sellerhub.services.transport import send

logger = logging.getLogger(__name__)

CREATE_PATH = "/auth/token/create"
REFRESH_PATH = "/auth/token/refresh"


class TokenExchangeClient:
    """
    Выпуск и продление токенов:
    - code -> access/refresh (/auth/token/create)
    - refresh_token -> новый access (/auth/token/refresh)
    Возвращает сырой ответ, без ретраев. Проверка success - на вызывающем.
    """

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
        self.base_url = base_url or settings.marketplace_auth_base
        self.timeout = timeout or settings.request_timeout_sec
        self.transport = transport

    async def create_access_token(self, code: str) -> dict:
        logger.info("Обмен authorization code на токен")
        payload = await self._exchange(CREATE_PATH, "code", code)
        logger.info(
            "Token create: code=%s account=%s access_token=%s",
            payload.get("code"), payload.get("account"), mask_token(payload.get("access_token")),
        )
        return payload

    async def refresh_access_token(self, refresh_token: str) -> dict:
        logger.info("Refresh токена %s", mask_token(refresh_token))
        payload = await self._exchange(REFRESH_PATH, "refresh_token", refresh_token)
        logger.info(
            "Token refresh: code=%s account=%s access_token=%s",
            payload.get("code"), payload.get("account"), mask_token(payload.get("access_token")),
        )
        return payload

    # ---------- helpers ----------

    async def _exchange(self, api_path: str, grant_field: str, grant_value: str) -> dict:
        # timestamp каждый раз свежий: старый ломает подпись на стороне сервера
        params = {
            "app_key": self.app_key,
            "timestamp": timestamp_ms(),
            "sign_method": SIGN_METHOD,
            grant_field: grant_value,
        }
        params["sign"] = sign(api_path, params, self.app_secret)

        return await send(
            "POST",
            self.base_url,
            api_path,
            params,
            timeout=self.timeout,
            transport=self.transport,
        )
