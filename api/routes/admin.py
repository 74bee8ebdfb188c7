"""
api/routes/admin.py -- Operator endpoints.

Routes:
  GET  /admin/metrics -- HTML page with the /app hit count
  POST /admin/reset   -- delete every user (and, by cascade, their refresh
                         tokens and chirps) and zero the hit counter

Reset is only available when PLATFORM=dev. Any other platform gets 403, so a
misconfigured production deploy cannot be wiped over HTTP.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from api.metrics import HitCounter, get_hit_counter
from api.models import ResetResponse
from auth.dependencies import get_user_store
from auth.store import UserStore
from core.config import get_settings

logger = logging.getLogger("chirpy.api")

router = APIRouter()

_METRICS_PAGE = """<html>
  <body>
    <h1>Welcome, Chirpy Admin</h1>
    <p>Chirpy has been visited {hits} times!</p>
  </body>
</html>
"""


@router.get("/metrics", response_class=HTMLResponse)
def metrics(hit_counter: HitCounter = Depends(get_hit_counter)) -> HTMLResponse:
    return HTMLResponse(_METRICS_PAGE.format(hits=hit_counter.value))


@router.post("/reset", response_model=ResetResponse)
def reset(
    user_store: UserStore = Depends(get_user_store),
    hit_counter: HitCounter = Depends(get_hit_counter),
) -> ResetResponse:
    if get_settings().platform != "dev":
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Reset is only allowed in dev environment."},
        )
    deleted = user_store.delete_all_users()
    hit_counter.reset()
    logger.warning("Admin reset removed %d users and cleared the hit counter", deleted)
    return ResetResponse(users_deleted=deleted)
