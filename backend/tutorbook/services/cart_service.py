"""Cart service - visitor selections held in Redis until checkout."""

import json
import logging
import secrets
from typing import Tuple
from uuid import UUID

import redis.asyncio as aioredis

from tutorbook.config import get_settings
from tutorbook.exceptions import NotFoundError
from tutorbook.services.slot_selector import Cart

settings = get_settings()
logger = logging.getLogger(__name__)


class CartService:
    """
    Session carts keyed by an opaque token.
    Carts never look at stored reservations; conflicts surface at checkout.
    """

    def __init__(self, redis: aioredis.Redis, teacher_id: UUID):
        self.redis = redis
        self.teacher_id = teacher_id
        self.ttl_seconds = settings.CART_TTL_MINUTES * 60

    def _key(self, token: str) -> str:
        return f"cart:{self.teacher_id}:{token}"

    async def create(self) -> Tuple[str, Cart]:
        token = secrets.token_urlsafe(24)
        cart = Cart()
        await self.save(token, cart)
        return token, cart

    async def get(self, token: str) -> Cart:
        raw = await self.redis.get(self._key(token))
        if raw is None:
            raise NotFoundError("Cart not found or expired")
        return Cart.from_dict(json.loads(raw))

    async def save(self, token: str, cart: Cart) -> None:
        """Store the cart and restart its expiry."""
        await self.redis.set(self._key(token), json.dumps(cart.to_dict()), ex=self.ttl_seconds)

    async def ttl(self, token: str) -> int:
        remaining = await self.redis.ttl(self._key(token))
        return max(remaining, 0)

    async def delete(self, token: str) -> None:
        await self.redis.delete(self._key(token))
        logger.debug("Cleared cart %s", token)
