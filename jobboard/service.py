"""
Matching query surface consumed by the UI.

Loads a profile and the most recent active jobs, ranks them with the match
scorer and serializes each job with its ``matchScore`` and ``matchReasons``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import joinedload

from .database import Company, Job, Profile
from .errors import MissingIdentifierError, NotFoundError
from .logger import get_logger
from .matching import MatchResult, find_best_candidates, find_best_matches

DEFAULT_CANDIDATES = 50
DEFAULT_LIMIT = 20


def _enum_value(v):
    return getattr(v, "value", v)


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


def company_to_dict(company: Optional[Company]) -> Optional[Dict[str, Any]]:
    if company is None:
        return None
    return {
        "id": company.id,
        "name": company.name,
        "slug": company.slug,
        "website": company.website,
        "location": company.location,
        "industry": company.industry,
        "isVerified": bool(company.is_verified),
    }


def salary_to_dict(job: Job) -> Optional[Dict[str, Any]]:
    """Salary is reported only when both bounds are known."""
    if job.salary_min is None or job.salary_max is None:
        return None
    return {"min": job.salary_min, "max": job.salary_max, "currency": job.salary_currency or "USD"}


def matched_job_to_dict(result: MatchResult) -> Dict[str, Any]:
    job = result.job
    if not getattr(job, "id", None):
        raise MissingIdentifierError(f"Job {getattr(job, 'title', '?')!r} has no id")
    return {
        "id": job.id,
        "title": job.title,
        "slug": job.slug,
        "company": company_to_dict(job.company),
        "location": job.location,
        "locationType": _enum_value(job.location_type),
        "employmentType": _enum_value(job.employment_type),
        "experienceLevel": _enum_value(job.experience_level),
        "salary": salary_to_dict(job),
        "skills": list(job.skills or []),
        "postedAt": _iso(job.posted_at),
        "matchScore": result.score,
        "matchReasons": list(result.reasons),
    }


def active_jobs_query(session, now: Optional[datetime] = None):
    now = now or datetime.now()
    return (
        session.query(Job)
        .filter(Job.is_active.is_(True))
        .filter((Job.expires_at.is_(None)) | (Job.expires_at >= now))
    )


def get_matched_jobs(
    session,
    profile_id: str,
    candidate_limit: int = DEFAULT_CANDIDATES,
    limit: int = DEFAULT_LIMIT,
    max_workers: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Rank the most recent active jobs for a profile.

    Args:
        session: Open SQLAlchemy session
        profile_id: Profile identifier
        candidate_limit: Most recent active jobs to consider
        limit: Number of ranked jobs to return
        max_workers: Optional thread pool size for scoring
        now: Reference time for expiry (default: now)

    Returns:
        Serialized jobs, best match first

    Raises:
        NotFoundError: If the profile does not exist
    """
    if not profile_id:
        raise NotFoundError("Profile not found")
    profile = session.get(Profile, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")

    jobs = (
        active_jobs_query(session, now)
        .options(joinedload(Job.company))
        .order_by(Job.posted_at.desc(), Job.id)
        .limit(candidate_limit)
        .all()
    )

    matches = find_best_matches(profile, jobs, limit=limit, max_workers=max_workers)
    get_logger().debug(
        "Ranked jobs for profile",
        profile_id=profile_id,
        candidates=len(jobs),
        returned=len(matches),
    )
    return [matched_job_to_dict(m) for m in matches]


def matched_profile_to_dict(result: MatchResult) -> Dict[str, Any]:
    profile = result.subject
    if not getattr(profile, "id", None):
        raise MissingIdentifierError(f"Profile {getattr(profile, 'username', '?')!r} has no id")
    return {
        "id": profile.id,
        "username": profile.username,
        "name": profile.name,
        "location": profile.location,
        "skills": list(profile.skills or []),
        "matchScore": result.score,
        "matchReasons": list(result.reasons),
    }


def get_matched_candidates(session, job_id: str, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
    """
    Rank profiles for an active job, best candidate first.

    Raises:
        NotFoundError: If the job does not exist or is no longer active
    """
    job = session.get(Job, job_id) if job_id else None
    if job is None or not job.is_active:
        raise NotFoundError("Job not found")

    profiles = session.query(Profile).order_by(Profile.created_at, Profile.id).all()
    matches = find_best_candidates(job, profiles, limit=limit)
    get_logger().debug("Ranked candidates for job", job_id=job_id, profiles=len(profiles), returned=len(matches))
    return [matched_profile_to_dict(m) for m in matches]
