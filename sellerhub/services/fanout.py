# sellerhub/services/fanout.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional

from sellerhub.models.account import SellerAccount
from sellerhub.services.dispatcher import ApiResponse

logger = logging.getLogger(__name__)


@dataclass
class AccountResult:
    account_id: str
    account: Optional[str]
    country: Optional[str]
    data: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FanOutResult:
    succeeded: list[AccountResult] = field(default_factory=list)
    failed: list[AccountResult] = field(default_factory=list)


async def fan_out(
    accounts: Iterable[SellerAccount],
    call: Callable[[SellerAccount], Awaitable[ApiResponse]],
) -> FanOutResult:
    """
    Один запрос на аккаунт, параллельно. Ждём все (не fail-fast),
    порядок результатов = порядок аккаунтов, а не порядок завершения.
    Сеть/таймаут и code != "0" -> failed по этому аккаунту, батч не падает.
    """
    accounts = list(accounts)
    results = await asyncio.gather(*(call(acc) for acc in accounts), return_exceptions=True)

    out = FanOutResult()
    for acc, res in zip(accounts, results):
        item = AccountResult(account_id=acc.id, account=acc.account, country=acc.country)

        if isinstance(res, asyncio.CancelledError):
            raise res
        if isinstance(res, Exception):
            logger.error("Аккаунт %s: %s", acc.id, res)
            item.error = res
            out.failed.append(item)
            continue

        item.data = res.payload
        if not res.ok:
            item.error = res.error
            out.failed.append(item)
        else:
            out.succeeded.append(item)

    logger.info("Fan-out: ok=%s failed=%s", len(out.succeeded), len(out.failed))
    return out
