"""
Durable crawler checkpoints (state_key -> cursor + meta).
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from sponsorwatch.core.errors import PersistenceError
from sponsorwatch.core.result import Err, Ok, Result
from sponsorwatch.db.context import get_db_session
from sponsorwatch.db.repositories import CheckpointRepository
from sponsorwatch.schemas.crawl import CheckpointOut

logger = logging.getLogger(__name__)


def backfill_state_key(channel_id: str) -> str:
    return f"backfill:{channel_id}"


def _decode_meta(meta_json: Optional[str]) -> dict[str, Any]:
    if not meta_json:
        return {}
    try:
        meta = json.loads(meta_json)
    except ValueError:
        return {}
    return meta if isinstance(meta, dict) else {}


def _to_out(checkpoint) -> CheckpointOut:
    return CheckpointOut(
        state_key=checkpoint.state_key,
        cursor=checkpoint.cursor,
        meta=_decode_meta(checkpoint.meta_json),
        updated_at=checkpoint.updated_at,
    )


class CheckpointStore:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, state_key: str) -> Result[Optional[CheckpointOut]]:
        try:
            with get_db_session(self.session_factory) as db:
                checkpoint = CheckpointRepository(db).get_by_id(state_key)
                return Ok(_to_out(checkpoint) if checkpoint else None)
        except SQLAlchemyError as e:
            logger.error(f"[checkpoints] Failed to read {state_key}: {e}")
            return Err(PersistenceError(f"Failed to read crawler state {state_key}: {e}"))

    def set(self, state_key: str, cursor: Optional[str], meta: Optional[dict[str, Any]] = None) -> Result[CheckpointOut]:
        try:
            meta_json = json.dumps(meta or {}, default=str)
        except (TypeError, ValueError) as e:
            return Err(PersistenceError(f"Crawler state meta for {state_key} is not serializable: {e}"))

        try:
            with get_db_session(self.session_factory) as db:
                checkpoint = CheckpointRepository(db).upsert(state_key, cursor, meta_json)
                db.commit()
                return Ok(_to_out(checkpoint))
        except SQLAlchemyError as e:
            logger.error(f"[checkpoints] Failed to write {state_key}: {e}")
            return Err(PersistenceError(f"Failed to write crawler state {state_key}: {e}"))
