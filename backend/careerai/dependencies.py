"""Shared FastAPI dependencies.

User identity is asserted upstream by the auth service and arrives as the
``X-User-Id`` header.
"""
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Header, HTTPException

from careerai.services.llm_gateway import BaseCompletionGateway, create_gateway


def _parse_user_id(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw.strip())


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> int:
    user_id = _parse_user_id(x_user_id)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Missing or invalid X-User-Id header")
    return user_id


async def get_optional_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[int]:
    return _parse_user_id(x_user_id)


@lru_cache(maxsize=1)
def get_gateway() -> BaseCompletionGateway:
    """The configured completion gateway, built once per process."""
    return create_gateway()


def get_gateway_source() -> Callable[[], BaseCompletionGateway]:
    """Deferred gateway lookup, for routes that can answer without a completion."""
    return get_gateway
