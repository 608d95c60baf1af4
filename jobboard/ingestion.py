"""
Bulk job ingestion with content-based deduplication.

Every record is handled independently in its own transaction:

1. validate the record
2. fingerprint (title, company name, description)
3. skip it as deduplicated when a job with that fingerprint exists
4. resolve or create the owning company
5. parse enum fields, falling back to defaults with a row warning
6. insert the job as active, warning when the company already has an
   active job with a near-identical title

Company resolution and the job insert share one transaction, so a failed
insert never leaves a company behind. A failing record becomes an error entry
and the batch carries on; nothing is rolled back across records.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from .companies import resolve_or_create_company
from .database import Job
from .dedup import are_likely_duplicates, compute_content_hash
from .errors import PersistenceError, ValidationError
from .logger import get_logger
from .normalize import (
    EnumParse,
    parse_employment_type,
    parse_experience_level,
    parse_location_type,
    slugify,
)
from .retry import RetryError, exponential_backoff, is_transient_error
from .schema import parse_timestamp, validate_batch, validate_import_record

INSERTED = "inserted"
DEDUPLICATED = "deduplicated"
ERROR = "error"

ENUM_FIELDS = (
    ("locationType", parse_location_type),
    ("employmentType", parse_employment_type),
    ("experienceLevel", parse_experience_level),
)


@dataclass
class RecordOutcome:
    """What happened to a single input row (1-based)."""

    row: int
    status: str
    job_id: Optional[str] = None
    message: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


@dataclass
class ImportResult:
    total: int = 0
    inserted: int = 0
    deduplicated: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add(self, outcome: RecordOutcome) -> None:
        if outcome.status == INSERTED:
            self.inserted += 1
        elif outcome.status == DEDUPLICATED:
            self.deduplicated += 1
        else:
            self.errors.append(f"Row {outcome.row}: {outcome.message}")
        self.warnings.extend(f"Row {outcome.row}: {w}" for w in outcome.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "inserted": self.inserted,
            "deduplicated": self.deduplicated,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def parse_enum_fields(record: Dict[str, Any]) -> Tuple[Dict[str, EnumParse], List[str]]:
    """Parse the enum-like fields of a record, collecting a warning per fallback."""
    parsed = {}
    warnings = []
    for key, parse in ENUM_FIELDS:
        result = parse(record.get(key))
        parsed[key] = result
        if not result.recognized:
            warnings.append(
                f"Unrecognized {key} {result.raw!r}, defaulted to {result.value.value!r}"
            )
    return parsed, warnings


def unique_job_slug(session, company_id: str, title: str, content_hash: str) -> str:
    """Slug from the title, suffixed with the fingerprint prefix if the company already uses it."""
    base = slugify(title.strip()) or content_hash[:12]
    taken = session.query(Job.id).filter_by(company_id=company_id, slug=base).first()
    return f"{base}-{content_hash[:8]}" if taken else base


def _naive(ts: Optional[datetime]) -> Optional[datetime]:
    if ts is not None and ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    return ts


def _build_job(record: Dict[str, Any], content_hash: str, enums: Dict[str, EnumParse]) -> Job:
    return Job(
        title=record["title"].strip(),
        description=record.get("description") or "",
        requirements=list(record.get("requirements") or []),
        benefits=list(record.get("benefits") or []),
        skills=list(record.get("skills") or []),
        location=record.get("location"),
        location_type=enums["locationType"].value,
        employment_type=enums["employmentType"].value,
        experience_level=enums["experienceLevel"].value,
        salary_min=record.get("salaryMin"),
        salary_max=record.get("salaryMax"),
        salary_currency=record.get("salaryCurrency") or "USD",
        apply_url=record.get("applyURL"),
        is_easy_apply=False,
        is_featured=False,
        is_active=True,
        content_hash=content_hash,
        source=record.get("source"),
        source_url=record.get("sourceURL"),
        posted_at=datetime.now(),
        expires_at=_naive(parse_timestamp(record.get("expiresAt"))),
    )


def find_similar_job(session, company, record: Dict[str, Any]) -> Optional[str]:
    """Id of an active job of this company that is likely the same posting under a reworded title."""
    candidate = (record["title"], company.name, record.get("description") or "")
    rows = (
        session.query(Job.id, Job.title, Job.description)
        .filter(Job.company_id == company.id, Job.is_active.is_(True))
        .order_by(Job.posted_at, Job.id)
        .all()
    )
    for job_id, title, description in rows:
        if are_likely_duplicates(candidate, (title, company.name, description or "")):
            return job_id
    return None


def _fingerprint_exists(session, content_hash: str) -> bool:
    return session.query(Job.id).filter_by(content_hash=content_hash).first() is not None


@exponential_backoff(
    max_retries=3,
    base_delay=0.05,
    max_delay=1.0,
    exceptions=(OperationalError,),
    retry_if=is_transient_error,
)
def store_record(session_factory, record: Dict[str, Any], content_hash: str, enums: Dict[str, EnumParse]) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Persist one validated record in a single transaction.

    Returns:
        Tuple of (status, job_id, similar_job_id); job_id is None unless inserted,
        similar_job_id names an active job of the same company with a near-identical title
    """
    session = session_factory()
    try:
        if _fingerprint_exists(session, content_hash):
            session.rollback()
            return DEDUPLICATED, None, None

        company, created = resolve_or_create_company(session, record["companyName"], record.get("companySlug"))
        similar_id = None if created else find_similar_job(session, company, record)
        job = _build_job(record, content_hash, enums)
        job.company_id = company.id
        job.slug = unique_job_slug(session, company.id, job.title, content_hash)
        session.add(job)
        session.commit()
        return INSERTED, job.id, similar_id
    except IntegrityError:
        session.rollback()
        # A concurrent importer stored the same posting first
        if _fingerprint_exists(session, content_hash):
            session.rollback()
            return DEDUPLICATED, None, None
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def import_record(session_factory, row: int, record: Any) -> RecordOutcome:
    """Run the full pipeline for one row, converting every failure into an outcome."""
    logger = get_logger()
    logger.record("records_processed")

    errors = validate_import_record(record)
    if errors:
        logger.record_failure("ValidationError")
        logger.warning("Rejected invalid record", row=row, errors=errors)
        return RecordOutcome(row=row, status=ERROR, message="; ".join(errors))

    content_hash = compute_content_hash(record["title"], record["companyName"], record.get("description") or "")
    enums, warnings = parse_enum_fields(record)
    if warnings:
        logger.record("enum_fallbacks", len(warnings))
        logger.warning("Enum fields defaulted", row=row, warnings=warnings)

    try:
        status, job_id, similar_id = store_record(session_factory, record, content_hash, enums)
    except ValidationError as e:
        logger.record_failure("ValidationError")
        return RecordOutcome(row=row, status=ERROR, message=str(e), warnings=warnings)
    except RetryError as e:
        logger.record_failure("RetryError")
        logger.error("Storage stayed busy, giving up on record", row=row, error=str(e))
        return RecordOutcome(row=row, status=ERROR, message=str(PersistenceError(f"Storage busy: {e}")), warnings=warnings)
    except SQLAlchemyError as e:
        error = PersistenceError(f"Could not store job: {getattr(e, 'orig', None) or e}")
        logger.record_failure(type(e).__name__)
        logger.error("Failed to store record", row=row, error=str(e))
        return RecordOutcome(row=row, status=ERROR, message=str(error), warnings=warnings)
    except Exception as e:
        logger.record_failure(type(e).__name__)
        logger.error("Unexpected failure importing record", row=row, error=repr(e))
        return RecordOutcome(row=row, status=ERROR, message=f"{type(e).__name__}: {e}", warnings=warnings)

    if status == DEDUPLICATED:
        logger.record("deduplicated")
        logger.debug("Skipped duplicate record", row=row, content_hash=content_hash)
    else:
        logger.record("inserted")
        logger.debug("Inserted job", row=row, job_id=job_id)
        if similar_id is not None:
            logger.record("near_duplicates")
            logger.info("Inserted job resembles an existing one", row=row, job_id=job_id, similar_job_id=similar_id)
            warnings = warnings + [f"Possible duplicate of job {similar_id}"]
    return RecordOutcome(row=row, status=status, job_id=job_id, warnings=warnings)


def bulk_import(records: Any, session_factory, max_workers: int = 1) -> ImportResult:
    """
    Import a batch of job records.

    Args:
        records: List of import records (camelCase keys as sent by importers)
        session_factory: Callable returning a new SQLAlchemy session
        max_workers: Records processed in parallel; 1 keeps it sequential

    Returns:
        ImportResult with counts, and row errors and warnings in row order

    Raises:
        ValidationError: If the batch is not a non-empty list
    """
    validate_batch(records)
    logger = get_logger()
    rows = list(enumerate(records, start=1))

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="import") as pool:
            outcomes = list(pool.map(lambda item: import_record(session_factory, *item), rows))
    else:
        outcomes = [import_record(session_factory, row, record) for row, record in rows]

    result = ImportResult(total=len(records))
    for outcome in outcomes:
        result.add(outcome)

    logger.info(
        f"Import complete: {result.inserted} inserted, {result.deduplicated} deduplicated, "
        f"{len(result.errors)} failed",
        total=result.total,
        warnings=len(result.warnings),
        workers=max_workers,
    )
    return result
