"""
Company resolution for ingestion.

Companies are keyed by slug. Creation runs inside a SAVEPOINT so that losing a
creation race to another importer (unique violation on ``companies.slug``)
only rolls back the attempted insert; the winner's row is then re-read.
"""

from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError

from .database import Company
from .errors import ValidationError
from .logger import get_logger
from .normalize import slugify


def company_slug(name: str, slug: Optional[str] = None) -> str:
    """Slug used as the natural key: an explicit slug wins over the name."""
    return slugify(slug if slug and slug.strip() else name.strip())


def find_company(session, slug: str) -> Optional[Company]:
    return session.query(Company).filter_by(slug=slug).first()


def resolve_or_create_company(session, name: str, slug: Optional[str] = None) -> Tuple[Company, bool]:
    """
    Find a company by slug, creating an unverified one if none exists.

    Safe to call concurrently for the same slug from several sessions. The
    caller owns the surrounding transaction; nothing is committed here.

    Args:
        session: Open SQLAlchemy session
        name: Company display name
        slug: Optional explicit slug (slugified before use)

    Returns:
        Tuple of (company, created)

    Raises:
        ValidationError: If the name/slug produces an empty slug
    """
    resolved_slug = company_slug(name, slug)
    if not resolved_slug:
        raise ValidationError(f"Company name {name!r} produces an empty slug")

    existing = find_company(session, resolved_slug)
    if existing is not None:
        return existing, False

    logger = get_logger()
    try:
        with session.begin_nested():
            company = Company(name=name.strip(), slug=resolved_slug, is_verified=False)
            session.add(company)
    except IntegrityError:
        # Another importer created it between our lookup and insert
        existing = find_company(session, resolved_slug)
        if existing is None:
            raise
        logger.record("conflicts_recovered")
        logger.debug("Company created concurrently, using existing row", slug=resolved_slug)
        return existing, False

    logger.record("companies_created")
    logger.info("Created company", slug=resolved_slug, name=company.name)
    return company, True
