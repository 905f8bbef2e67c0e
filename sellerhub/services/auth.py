# sellerhub/services/auth.py

from __future__ import annotations

import asyncio
import logging
from typing import Optional
from urllib.parse import urlencode

from sellerhub.core.config import settings
from sellerhub.core.errors import AuthorizationError
from sellerhub.models.account import SellerAccount
from sellerhub.services.accounts import AccountData, SqlAccountStore
from sellerhub.services.dispatcher import SUCCESS_CODES
from sellerhub.services.tokens import TokenExchangeClient

logger = logging.getLogger(__name__)


def authorization_url() -> str:
    params = {
        "response_type": "code",
        "force_auth": "true",
        "redirect_uri": settings.marketplace_redirect_uri,
        "client_id": settings.marketplace_app_key,
    }
    return f"{settings.marketplace_authorize_url}?{urlencode(params)}"


def is_token_success(payload: dict) -> bool:
    if not payload.get("access_token"):
        return False
    if "success" in payload:
        return bool(payload["success"])
    if "code" in payload:
        return payload["code"] in SUCCESS_CODES
    return True


def _expires_in(payload: dict) -> int:
    value = payload.get("expires_in")
    if isinstance(value, bool):
        value = None
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise AuthorizationError(f"Некорректный expires_in в ответе токена: {value!r}", payload)
    return value


def account_data_from_payload(payload: dict, require_identity: bool = True) -> AccountData:
    # seller_id лежит в country_user_info[0], иначе берём имя аккаунта
    seller_id = None
    user_info = payload.get("country_user_info") or []
    if isinstance(user_info, list) and user_info and isinstance(user_info[0], dict):
        seller_id = user_info[0].get("seller_id")

    data = AccountData(
        seller_id=str(seller_id) if seller_id else payload.get("account"),
        account=payload.get("account"),
        country=payload.get("country"),
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token"),
        expires_in=_expires_in(payload),
    )
    if require_identity and not (data.seller_id or data.account):
        raise AuthorizationError("В ответе токена нет ни seller_id, ни account", payload)
    return data


def _failure_detail(payload: dict) -> str:
    return str(
        payload.get("message")
        or payload.get("error")
        or payload.get("details")
        or f"Неизвестная ошибка (code={payload.get('code')})"
    )


class AuthorizationService:
    """
    Подключение аккаунта:
    1) callback с code (или error)
    2) code -> токены
    3) upsert в store + сделать активным
    Аккаунт пишется только при полном успехе.
    Refresh только по явному вызову refresh_account().
    """

    def __init__(self, store: SqlAccountStore, tokens: Optional[TokenExchangeClient] = None):
        self.store = store
        self.tokens = tokens or TokenExchangeClient()

    async def handle_callback(
        self, code: Optional[str] = None, error: Optional[str] = None
    ) -> SellerAccount:
        if error:
            logger.warning("Авторизация отклонена: %s", error)
            raise AuthorizationError(f"Авторизация не удалась: {error}")
        if not code:
            raise AuthorizationError("В callback нет authorization code")

        payload = await self.tokens.create_access_token(code)
        if not is_token_success(payload):
            logger.warning("Обмен code не удался: %s", _failure_detail(payload))
            raise AuthorizationError(_failure_detail(payload), payload)

        data = account_data_from_payload(payload)
        # store синхронный: в поток, чтобы не блокировать event loop
        acc = await asyncio.to_thread(self.store.upsert, data)
        await asyncio.to_thread(self.store.set_active, acc.id)
        return acc

    async def refresh_account(self, account_id: str) -> Optional[SellerAccount]:
        acc = await asyncio.to_thread(self.store.get, account_id)
        if acc is None:
            return None

        refresh_token = self.store.refresh_token_for(acc)
        if not refresh_token:
            raise AuthorizationError(f"У аккаунта {account_id} нет refresh_token, нужно переподключение")

        payload = await self.tokens.refresh_access_token(refresh_token)
        if not is_token_success(payload):
            logger.warning("Refresh %s не удался: %s", account_id, _failure_detail(payload))
            raise AuthorizationError(_failure_detail(payload), payload)

        data = account_data_from_payload(payload, require_identity=False)
        # ответ refresh может не содержать country_user_info: id аккаунта не меняем
        data.seller_id = acc.seller_id or data.seller_id
        data.account = data.account or acc.account
        data.country = data.country or acc.country
        data.refresh_token = data.refresh_token or refresh_token
        if data.id != account_id:
            data.seller_id = account_id
        return await asyncio.to_thread(self.store.upsert, data)
