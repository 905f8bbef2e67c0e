# sellerhub/services/transport.py

from __future__ import annotations

import logging
from typing import Optional

import httpx

from sellerhub.core.errors import TransportError

logger = logging.getLogger(__name__)


async def send(
    method: str,
    base_url: str,
    api_path: str,
    params: dict[str, str],
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """
    Один запрос, все параметры в query string, тела нет.
    Любая сетевая ошибка / таймаут / не-2xx -> TransportError.
    """
    url = f"{base_url}{api_path}"

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            r = await client.request(method, url, params=params)
            r.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error("%s %s -> HTTP %s", method, api_path, e.response.status_code)
        raise TransportError(
            "Маркетплейс вернул ошибку HTTP",
            path=api_path,
            status_code=e.response.status_code,
            body=e.response.text,
        ) from e
    except httpx.TimeoutException as e:
        logger.error("%s %s -> timeout after %ss", method, api_path, timeout)
        raise TransportError(f"Таймаут запроса ({timeout}s)", path=api_path) from e
    except httpx.HTTPError as e:
        logger.error("%s %s -> %s: %s", method, api_path, type(e).__name__, e)
        raise TransportError(f"Сетевая ошибка: {e}", path=api_path) from e

    try:
        data = r.json()
    except ValueError as e:
        # 2xx, но тело не JSON
        raise TransportError(
            "Ответ не является JSON", path=api_path, status_code=r.status_code, body=r.text
        ) from e

    logger.debug("%s %s -> HTTP %s", method, api_path, r.status_code)
    if not isinstance(data, dict):
        raise TransportError(
            f"Неожиданный формат ответа: {type(data).__name__}",
            path=api_path,
            status_code=r.status_code,
            body=r.text,
        )
    return data
