# sellerhub/services/accounts.py

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from sellerhub.core.crypto import decrypt_str, encrypt_str
from sellerhub.models.account import SellerAccount, StoreState

logger = logging.getLogger(__name__)

ACTIVE_KEY = "active_account_id"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_ms(dt: datetime) -> int:
    return (dt - _EPOCH) // timedelta(milliseconds=1)


@dataclass
class AccountData:
    access_token: str
    expires_in: int
    seller_id: Optional[str] = None
    account: Optional[str] = None
    country: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def id(self) -> str:
        account_id = self.seller_id or self.account
        if not account_id:
            raise ValueError("Нет ни seller_id, ни account: не из чего сделать id аккаунта")
        return str(account_id)


class AccountStore(abc.ABC):
    """Реестр подключённых аккаунтов + указатель на активный."""

    @abc.abstractmethod
    def list(self) -> list[SellerAccount]: ...

    @abc.abstractmethod
    def upsert(self, data: AccountData) -> SellerAccount: ...

    @abc.abstractmethod
    def remove(self, account_id: str) -> None: ...

    @abc.abstractmethod
    def set_active(self, account_id: str) -> Optional[SellerAccount]: ...

    @abc.abstractmethod
    def get_active(self) -> Optional[SellerAccount]: ...

    @abc.abstractmethod
    def clear_all(self) -> None: ...

    def get(self, account_id: str) -> Optional[SellerAccount]:
        return next((a for a in self.list() if a.id == account_id), None)

    def is_expired(self, account: SellerAccount) -> bool:
        # только сообщает; refresh здесь не запускается
        return _to_ms(_utcnow()) > account.token_expires_at


class SqlAccountStore(AccountStore):
    """
    Хранилище на SQLAlchemy:
    - порядок = position (при перезаписи не меняется)
    - refresh_token хранит ЗАШИФРОВАННЫМ
    - added_at при перезаписи сохраняется (id тот же -> аккаунт тот же)
    """

    def __init__(self, db: Session):
        self.db = db

    def list(self) -> list[SellerAccount]:
        return list(
            self.db.execute(select(SellerAccount).order_by(SellerAccount.position)).scalars()
        )

    def get(self, account_id: str) -> Optional[SellerAccount]:
        return self.db.get(SellerAccount, account_id)

    def upsert(self, data: AccountData) -> SellerAccount:
        now = _utcnow()
        account_id = data.id

        acc = self.db.get(SellerAccount, account_id)
        if acc is None:
            last = self.db.execute(select(func.max(SellerAccount.position))).scalar()
            acc = SellerAccount(
                id=account_id,
                position=(last or 0) + 1,
                added_at=now,
            )
            self.db.add(acc)
            logger.info("Новый аккаунт %s (%s)", account_id, data.country)
        else:
            logger.info("Перезапись токенов аккаунта %s", account_id)

        acc.seller_id = data.seller_id
        acc.account = data.account
        acc.country = data.country
        acc.access_token = data.access_token
        acc.refresh_token_enc = encrypt_str(data.refresh_token) if data.refresh_token else None
        acc.expires_in = int(data.expires_in)
        acc.token_expires_at = _to_ms(now) + int(data.expires_in) * 1000

        self.db.commit()
        self.db.refresh(acc)
        return acc

    def remove(self, account_id: str) -> None:
        acc = self.db.get(SellerAccount, account_id)
        if acc is None:
            return
        self.db.delete(acc)
        self.db.commit()
        logger.info("Аккаунт %s удалён", account_id)

    def set_active(self, account_id: str) -> Optional[SellerAccount]:
        acc = self.db.get(SellerAccount, account_id)
        if acc is None:
            return None

        state = self.db.get(StoreState, ACTIVE_KEY)
        if state is None:
            self.db.add(StoreState(key=ACTIVE_KEY, value=account_id))
        else:
            state.value = account_id
        self.db.commit()
        logger.info("Активный аккаунт: %s", account_id)
        return acc

    def get_active(self) -> Optional[SellerAccount]:
        state = self.db.get(StoreState, ACTIVE_KEY)
        if state is None or not state.value:
            return None
        # указатель может ссылаться на удалённый аккаунт
        return self.db.get(SellerAccount, state.value)

    def clear_all(self) -> None:
        self.db.execute(delete(SellerAccount))
        self.db.execute(delete(StoreState).where(StoreState.key == ACTIVE_KEY))
        self.db.commit()
        logger.info("Все аккаунты удалены")

    def refresh_token_for(self, account: SellerAccount) -> Optional[str]:
        if not account.refresh_token_enc:
            return None
        return decrypt_str(account.refresh_token_enc)
