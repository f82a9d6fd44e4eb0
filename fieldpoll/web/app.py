"""
HTTP surface: one read-only resource per device family.

    GET /api/{family}?ip=<addr>  -> one record
    GET /api/{family}            -> records for every configured IP
    GET /api/families            -> configured family names
"""

import logging
import math
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Query

from fieldpoll import __version__
from fieldpoll.pal.gateway import Gateway
from fieldpoll.pal.orchestrator import DataRecord

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Replace NaN and infinities (e.g. unset REAL registers) with None"""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    return value


def record_to_json(record: DataRecord) -> dict[str, Any]:
    return _json_safe(record.to_dict())


def create_app(gateway: Gateway) -> FastAPI:
    """Build the FastAPI application serving a gateway"""
    app = FastAPI(title="fieldpoll", version=__version__)
    app.state.gateway = gateway

    router = APIRouter(prefix="/api", tags=["devices"])

    @router.get("/families", response_model=list[str])
    def list_families():
        return gateway.families()

    @router.get("/{family}")
    def read_family(family: str, ip: str | None = Query(None)):
        try:
            orchestrator = gateway.orchestrator(family)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown device family: {family}")

        if ip:
            return record_to_json(orchestrator.get_one(ip))
        return [record_to_json(record) for record in orchestrator.get_all()]

    app.include_router(router)
    logger.info("HTTP app ready for families: %s", ", ".join(gateway.families()) or "none")
    return app
