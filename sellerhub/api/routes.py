from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from sellerhub.core.db import get_db
from sellerhub.core.errors import AuthorizationError, SignatureInputError, TransportError
from sellerhub.models.account import SellerAccount
from sellerhub.services.accounts import SqlAccountStore
from sellerhub.services.auth import AuthorizationService, authorization_url
from sellerhub.services.dispatcher import SignedRequestDispatcher
from sellerhub.services.fanout import AccountResult, fan_out
from sellerhub.services.orders import OrdersService
from sellerhub.services.tokens import TokenExchangeClient

router = APIRouter()


def get_store(db: Session = Depends(get_db)) -> SqlAccountStore:
    return SqlAccountStore(db)


def get_token_client() -> TokenExchangeClient:
    return TokenExchangeClient()


def get_dispatcher() -> SignedRequestDispatcher:
    return SignedRequestDispatcher()


class AccountOut(BaseModel):
    id: str
    seller_id: str | None
    account: str | None
    country: str | None
    expires_in: int
    token_expires_at: int
    added_at: datetime
    is_expired: bool
    is_active: bool


class SignedCallRequest(BaseModel):
    api_path: str = Field(..., pattern=r"^/")
    params: dict[str, str] = Field(default_factory=dict)
    account_id: str | None = None


class OrderItemsRequest(BaseModel):
    order_ids: list[int | str] = Field(..., min_length=1)


def _account_out(store: SqlAccountStore, acc: SellerAccount, active_id: str | None) -> AccountOut:
    return AccountOut(
        id=acc.id,
        seller_id=acc.seller_id,
        account=acc.account,
        country=acc.country,
        expires_in=acc.expires_in,
        token_expires_at=acc.token_expires_at,
        added_at=acc.added_at,
        is_expired=store.is_expired(acc),
        is_active=acc.id == active_id,
    )


def _active_id(store: SqlAccountStore) -> str | None:
    active = store.get_active()
    return active.id if active else None


def _resolve_account(store: SqlAccountStore, account_id: str | None) -> SellerAccount:
    acc = store.get(account_id) if account_id else store.get_active()
    if acc is None:
        raise HTTPException(status_code=404, detail="Аккаунт не найден. Сначала подключите аккаунт.")
    return acc


def _result_out(r: AccountResult) -> dict[str, Any]:
    return {
        "account_id": r.account_id,
        "account": r.account,
        "country": r.country,
        "data": r.data,
        "error": str(r.error) if r.error else None,
    }


@router.get("/health")
def health():
    return {"ok": True}


# ---------- auth ----------

@router.get("/auth/url")
def auth_url():
    return {"auth_url": authorization_url()}


@router.get("/auth/callback")
async def auth_callback(
    code: str | None = None,
    error: str | None = None,
    store: SqlAccountStore = Depends(get_store),
    tokens: TokenExchangeClient = Depends(get_token_client),
):
    svc = AuthorizationService(store, tokens)
    try:
        acc = await svc.handle_callback(code=code, error=error)
    except AuthorizationError as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _account_out(store, acc, acc.id)


# ---------- accounts ----------

@router.get("/accounts")
def list_accounts(store: SqlAccountStore = Depends(get_store)):
    active_id = _active_id(store)
    return [_account_out(store, acc, active_id) for acc in store.list()]


@router.get("/accounts/active")
def active_account(store: SqlAccountStore = Depends(get_store)):
    acc = store.get_active()
    if acc is None:
        raise HTTPException(status_code=404, detail="Активный аккаунт не выбран")
    return _account_out(store, acc, acc.id)


@router.post("/accounts/{account_id}/activate")
def activate_account(account_id: str, store: SqlAccountStore = Depends(get_store)):
    acc = store.set_active(account_id)
    if acc is None:
        raise HTTPException(status_code=404, detail=f"Аккаунт {account_id} не найден")
    return _account_out(store, acc, acc.id)


@router.post("/accounts/{account_id}/refresh")
async def refresh_account(
    account_id: str,
    store: SqlAccountStore = Depends(get_store),
    tokens: TokenExchangeClient = Depends(get_token_client),
):
    svc = AuthorizationService(store, tokens)
    try:
        acc = await svc.refresh_account(account_id)
    except AuthorizationError as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if acc is None:
        raise HTTPException(status_code=404, detail=f"Аккаунт {account_id} не найден")
    return _account_out(store, acc, await run_in_threadpool(_active_id, store))


@router.delete("/accounts/{account_id}")
def remove_account(account_id: str, store: SqlAccountStore = Depends(get_store)):
    store.remove(account_id)
    return {"ok": True}


@router.delete("/accounts")
def clear_accounts(store: SqlAccountStore = Depends(get_store)):
    store.clear_all()
    return {"ok": True}


# ---------- signed calls ----------

@router.post("/call")
async def signed_call(
    payload: SignedCallRequest,
    store: SqlAccountStore = Depends(get_store),
    dispatcher: SignedRequestDispatcher = Depends(get_dispatcher),
):
    acc = await run_in_threadpool(_resolve_account, store, payload.account_id)
    try:
        resp = await dispatcher.call(payload.api_path, acc.access_token, payload.params)
    except SignatureInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return resp.payload


@router.post("/fanout")
async def signed_fanout(
    payload: SignedCallRequest,
    store: SqlAccountStore = Depends(get_store),
    dispatcher: SignedRequestDispatcher = Depends(get_dispatcher),
):
    accounts = await run_in_threadpool(store.list)
    result = await fan_out(
        accounts,
        lambda acc: dispatcher.call(payload.api_path, acc.access_token, payload.params),
    )
    return {
        "succeeded": [_result_out(r) for r in result.succeeded],
        "failed": [_result_out(r) for r in result.failed],
    }


# ---------- orders ----------

@router.get("/orders/{order_id}/items")
async def order_items(
    order_id: int,
    account_id: str | None = None,
    store: SqlAccountStore = Depends(get_store),
    dispatcher: SignedRequestDispatcher = Depends(get_dispatcher),
):
    acc = await run_in_threadpool(_resolve_account, store, account_id)
    try:
        resp = await OrdersService(dispatcher).get_order_items(acc.access_token, order_id)
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return resp.payload


@router.post("/orders/items")
async def multiple_order_items(
    payload: OrderItemsRequest,
    account_id: str | None = None,
    store: SqlAccountStore = Depends(get_store),
    dispatcher: SignedRequestDispatcher = Depends(get_dispatcher),
):
    acc = await run_in_threadpool(_resolve_account, store, account_id)
    try:
        resp = await OrdersService(dispatcher).get_multiple_order_items(acc.access_token, payload.order_ids)
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return resp.payload
