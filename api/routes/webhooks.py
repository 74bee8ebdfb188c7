"""
api/routes/webhooks.py -- Inbound events from the Polka billing provider.

Routes:
  POST /api/polka/webhooks -- "user.upgraded" turns on Chirpy Red; 204

Events other than "user.upgraded" are acknowledged with 204 and ignored.
An upgrade for an unknown user gets 404.

When POLKA_KEY is configured the request must carry it in X-API-Key.
"""

from __future__ import annotations

import logging
import secrets
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import PolkaWebhook
from auth.dependencies import get_user_store, unauthorized
from auth.store import UserStore
from core.config import get_settings

logger = logging.getLogger("chirpy.api")

router = APIRouter()

UPGRADE_EVENT = "user.upgraded"


def require_polka_key(request: Request) -> None:
    expected = get_settings().polka_key
    if not expected:
        return
    presented = request.headers.get("X-API-Key", "")
    if not secrets.compare_digest(presented.encode(), expected.encode()):
        logger.info("Rejected Polka webhook: bad or missing API key")
        raise unauthorized("Invalid API key.")


@router.post("/polka/webhooks", status_code=204, dependencies=[Depends(require_polka_key)])
def polka_webhook(
    body: PolkaWebhook,
    user_store: UserStore = Depends(get_user_store),
) -> Response:
    if body.event != UPGRADE_EVENT:
        return Response(status_code=204)

    try:
        user_id = uuid.UUID(body.data.user_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "invalid_user_id", "message": "data.user_id is not a valid user ID."},
        ) from exc

    if not user_store.upgrade_to_chirpy_red(user_id):
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "User not found."})

    logger.info("Upgraded user %s to Chirpy Red", user_id)
    return Response(status_code=204)
