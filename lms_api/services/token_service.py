"""Session token housekeeping."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from lms_api.db import models
from lms_api.utils.datetime import as_utc
from lms_api.utils.logger import logger


def cleanup_expired_tokens(db: Session, now: datetime) -> int:
    """Delete tokens that expired before ``now``; the caller commits."""

    deleted = (
        db.query(models.Token)
        .filter(models.Token.expires_at < as_utc(now))
        .delete(synchronize_session=False)
    )
    logger.info("Removed %s expired tokens", deleted)
    return deleted
