import logging
from typing import Any

from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from string_registry.config import Settings

logger = logging.getLogger("string_registry.limiter")


def create_limiter(settings: Settings) -> Limiter:
    try:
        return Limiter(
            key_func=get_remote_address,
            default_limits=[settings.default_rate_limit],
            enabled=settings.rate_limit_enabled,
        )
    except Exception:
        logger.exception("Failed to create slowapi Limiter")
        raise


def get_middleware() -> Any:
    return SlowAPIMiddleware
