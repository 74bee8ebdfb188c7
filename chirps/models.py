"""
chirps/models.py -- Domain dataclass for a chirp.

A pure data container. Length rules and word filtering live in
chirps/content.py; persistence lives in chirps/store.py.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Chirp:
    """A short post owned by one user.

    body is stored already filtered (see chirps.content.clean_body).
    user_id is the author, taken from the access token at creation time and
    never changed afterwards. Only the author may delete the chirp.
    """

    body: str
    user_id: uuid.UUID
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime | None = None  # set by store on insert
    updated_at: datetime | None = None
