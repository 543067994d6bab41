from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers and monitoring.

    Only reports that the process is serving; the key-value store is not
    probed because quota checks keep working (fail open) without it.
    """

    return {"status": "ok"}
