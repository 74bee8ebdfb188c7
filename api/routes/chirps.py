"""
api/routes/chirps.py -- Chirp read, create and delete endpoints.

Routes:
  GET    /api/chirps             -- every chirp, oldest first (public)
  GET    /api/chirps/{chirp_id}  -- one chirp (public)
  POST   /api/chirps             -- create as the token subject (access token)
  DELETE /api/chirps/{chirp_id}  -- delete own chirp (access token); 403 for others

The author is always the access token subject. A client cannot name another
user as author, and DELETE compares the stored author with the subject.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import ChirpCreate, ChirpResponse
from auth.dependencies import get_current_user, get_current_user_id
from auth.models import User
from chirps.content import ChirpLengthError, check_length, clean_body
from chirps.store import ChirpStore

logger = logging.getLogger("chirpy.api")

router = APIRouter()


def get_chirp_store(request: Request) -> ChirpStore:
    return request.app.state.chirp_store


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": "Chirp not found."})


@router.get("/chirps", response_model=list[ChirpResponse])
def list_chirps(chirp_store: ChirpStore = Depends(get_chirp_store)) -> list[ChirpResponse]:
    return [ChirpResponse.from_chirp(c) for c in chirp_store.list_chirps()]


@router.get("/chirps/{chirp_id}", response_model=ChirpResponse)
def get_chirp(chirp_id: uuid.UUID, chirp_store: ChirpStore = Depends(get_chirp_store)) -> ChirpResponse:
    chirp = chirp_store.get_chirp(chirp_id)
    if chirp is None:
        raise _not_found()
    return ChirpResponse.from_chirp(chirp)


@router.post("/chirps", response_model=ChirpResponse, status_code=201)
def create_chirp(
    body: ChirpCreate,
    current_user: User = Depends(get_current_user),
    chirp_store: ChirpStore = Depends(get_chirp_store),
) -> ChirpResponse:
    """Post a chirp. Blocked words are masked before the body is stored."""
    try:
        check_length(body.body)
    except ChirpLengthError as exc:
        raise HTTPException(status_code=400, detail={"code": "invalid_chirp", "message": str(exc)}) from exc

    chirp = chirp_store.create_chirp(clean_body(body.body), current_user.id)
    logger.info("User %s created chirp %s", current_user.id, chirp.id)
    return ChirpResponse.from_chirp(chirp)


@router.delete("/chirps/{chirp_id}", status_code=204)
def delete_chirp(
    chirp_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    chirp_store: ChirpStore = Depends(get_chirp_store),
) -> Response:
    chirp = chirp_store.get_chirp(chirp_id)
    if chirp is None:
        raise _not_found()
    if chirp.user_id != user_id:
        logger.warning("User %s tried to delete chirp %s owned by %s", user_id, chirp_id, chirp.user_id)
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "You can only delete your own chirps."},
        )
    chirp_store.delete_chirp(chirp_id)
    return Response(status_code=204)
