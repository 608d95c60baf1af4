"""
Expiration sweep for job postings.

Jobs past their ``expires_at`` are deactivated, never deleted, so they drop
out of matching while their content hash keeps blocking re-imports.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import Job
from .errors import PersistenceError
from .logger import get_logger


def deactivate_expired_jobs(session, now: Optional[datetime] = None) -> int:
    """
    Deactivate every active job whose expiry has passed.

    Args:
        session: Open SQLAlchemy session
        now: Reference time (default: now)

    Returns:
        Number of jobs deactivated

    Raises:
        PersistenceError: If the update fails; nothing is changed in that case
    """
    logger = get_logger()
    now = now or datetime.now()

    try:
        deactivated = (
            session.query(Job)
            .filter(Job.is_active.is_(True))
            .filter(Job.expires_at.isnot(None))
            .filter(Job.expires_at < now)
            .update({Job.is_active: False, Job.updated_at: now}, synchronize_session=False)
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Expiration sweep failed: {e}", error=str(e), cutoff=now.isoformat())
        raise PersistenceError(f"Expiration sweep failed: {e}") from e

    logger.info(
        f"Expiration sweep complete: {deactivated} deactivated",
        jobs_deactivated=deactivated,
        cutoff=now.isoformat(),
    )
    return deactivated
