from __future__ import annotations

from freemium.api.routes.health import router as health_router
from freemium.api.routes.premium import router as premium_router
from freemium.api.routes.usage import router as usage_router

__all__ = ["health_router", "premium_router", "usage_router"]
