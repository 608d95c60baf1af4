"""
Profile-to-job match scoring.

Scores are a weighted sum of three signals, each in [0, 1]:

- skills (0.70): share of the job's skills the profile covers
- experience (0.15): desired experience level equals the job's level
- location (0.15): the job's location or location type suits the profile

Scoring is pure and deterministic. Ranking sorts stably, so jobs with equal
scores keep their input order.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional

from .normalize import (
    LocationType,
    normalize_skills,
    normalize_text,
    parse_experience_level,
    parse_location_type,
)

SKILLS_WEIGHT = 0.7
EXPERIENCE_WEIGHT = 0.15
LOCATION_WEIGHT = 0.15

EXCELLENT_THRESHOLD = 0.8
GOOD_THRESHOLD = 0.6

DEFAULT_LIMIT = 20


@dataclass
class MatchResult:
    """A scored pairing; ``subject`` is the job (or profile, when ranking candidates)."""

    subject: Any
    score: float
    reasons: List[str] = field(default_factory=list)

    @property
    def job(self):
        return self.subject


def _as_enum(v, parse) -> Optional[Enum]:
    """Enum member for a stored value or free text; None when absent or unrecognized."""
    if isinstance(v, Enum):
        return v
    if v is None or not str(v).strip():
        return None
    parsed = parse(str(v))
    return parsed.value if parsed.recognized else None


def _clean_locations(locations) -> List[str]:
    cleaned = (normalize_text(loc) for loc in (locations or []) if isinstance(loc, str))
    return [loc for loc in cleaned if loc]


def _clamp(x: float) -> float:
    return min(1.0, max(0.0, x))


def skill_overlap(profile, job) -> float:
    """|profile skills ∩ job skills| / |job skills|, or 0.0 when either side is empty."""
    profile_skills = normalize_skills(getattr(profile, "skills", None))
    job_skills = normalize_skills(getattr(job, "skills", None))
    if not profile_skills or not job_skills:
        return 0.0
    return _clamp(len(profile_skills & job_skills) / len(job_skills))


def experience_matches(profile, job) -> bool:
    desired = _as_enum(getattr(profile, "desired_experience_level", None), parse_experience_level)
    return desired is not None and desired is _as_enum(getattr(job, "experience_level", None), parse_experience_level)


def location_matches(profile, job) -> bool:
    """
    Whether the job's location suits the profile.

    Desired location types are parsed like imported values, so "remote" or
    "onsite" count the same as "Remote" and "On-site". When the profile lists
    no desired locations, its own location is compared with the job's.
    """
    job_type = _as_enum(getattr(job, "location_type", None), parse_location_type)
    desired_types = {
        t for t in (_as_enum(raw, parse_location_type) for raw in (getattr(profile, "desired_location_types", None) or []))
        if t is not None
    }
    desired_locations = _clean_locations(getattr(profile, "desired_locations", None))

    if job_type is not None and job_type in desired_types:
        return True

    if job_type is LocationType.REMOTE:
        wants_remote = "remote" in desired_locations
        no_preference = not desired_types and not desired_locations
        return wants_remote or no_preference

    job_location = normalize_text(getattr(job, "location", None))
    if not job_location:
        return False
    wanted = desired_locations or _clean_locations([getattr(profile, "location", None)])
    return any(loc in job_location or job_location in loc for loc in wanted)


def score_job(profile, job) -> float:
    """
    Compute the match score between a profile and a job.

    Returns:
        Score in [0.0, 1.0]
    """
    score = SKILLS_WEIGHT * skill_overlap(profile, job)
    if experience_matches(profile, job):
        score += EXPERIENCE_WEIGHT
    if location_matches(profile, job):
        score += LOCATION_WEIGHT
    return _clamp(round(score, 6))


def match_reasons(job, score: float) -> List[str]:
    reasons = []
    if score >= EXCELLENT_THRESHOLD:
        reasons.append("Excellent skill match")
    elif score >= GOOD_THRESHOLD:
        reasons.append("Good skill match")
    if _as_enum(getattr(job, "location_type", None), parse_location_type) is LocationType.REMOTE:
        reasons.append("Remote position")
    return reasons


def match_job(profile, job) -> MatchResult:
    score = score_job(profile, job)
    return MatchResult(subject=job, score=score, reasons=match_reasons(job, score))


def rank(results: Iterable[MatchResult], limit: int = DEFAULT_LIMIT) -> List[MatchResult]:
    """Stable sort by score descending, truncated to ``limit``."""
    ordered = sorted(results, key=lambda r: r.score, reverse=True)
    return ordered[:max(limit, 0)]


def find_best_matches(profile, jobs: Iterable, limit: int = DEFAULT_LIMIT, max_workers: Optional[int] = None) -> List[MatchResult]:
    """
    Rank jobs for a profile.

    Args:
        profile: Profile-like object (skills, desired_* attributes)
        jobs: Candidate jobs
        limit: Number of results to keep
        max_workers: Score in a thread pool when greater than 1

    Returns:
        Up to ``limit`` MatchResults, best first
    """
    jobs = list(jobs)
    if max_workers and max_workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="match") as pool:
            # map() yields in submission order, keeping the merge deterministic
            results = list(pool.map(lambda job: match_job(profile, job), jobs))
    else:
        results = [match_job(profile, job) for job in jobs]
    return rank(results, limit)


def find_best_candidates(job, profiles: Iterable, limit: int = DEFAULT_LIMIT) -> List[MatchResult]:
    """Rank profiles for a job, for the recruiter side. Reasons describe the job."""
    results = []
    for profile in profiles:
        score = score_job(profile, job)
        results.append(MatchResult(subject=profile, score=score, reasons=match_reasons(job, score)))
    return rank(results, limit)
