# sellerhub/services/orders.py

from __future__ import annotations

import json
from typing import Iterable

from sellerhub.services.dispatcher import ApiResponse, SignedRequestDispatcher


class OrdersService:
    def __init__(self, dispatcher: SignedRequestDispatcher):
        self.dispatcher = dispatcher

    async def get_order_items(self, access_token: str, order_id: int | str) -> ApiResponse:
        return await self.dispatcher.call(
            "/order/items/get", access_token, {"order_id": str(order_id)}
        )

    async def get_multiple_order_items(
        self, access_token: str, order_ids: Iterable[int | str]
    ) -> ApiResponse:
        # подписываются только плоские строки -> список уходит JSON-текстом
        order_ids_json = json.dumps(list(order_ids), separators=(",", ":"))
        return await self.dispatcher.call(
            "/orders/items/get", access_token, {"order_ids": order_ids_json}
        )
