"""
Pytest configuration and shared fixtures.
"""

import hashlib
from datetime import datetime
from typing import Any, Dict

import pytest

from jobboard.database import Company, Job, Profile, init_database, get_session_factory
from jobboard.logger import get_logger, reset_logger
from jobboard.normalize import EmploymentType, ExperienceLevel, LocationType


@pytest.fixture(autouse=True)
def isolated_logger(tmp_path):
    """Fresh global logger per test, writing only to the test's tmp dir."""
    reset_logger()
    logger = get_logger(log_dir=tmp_path / "logs", enable_console=False)
    yield logger
    reset_logger()


@pytest.fixture
def db_path(tmp_path):
    """Initialized temporary SQLite database."""
    path = tmp_path / "jobboard.db"
    init_database(path)
    return path


@pytest.fixture
def session_factory(db_path):
    return get_session_factory(db_path)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def valid_import_record() -> Dict[str, Any]:
    """Valid import record with every optional field filled."""
    return {
        "title": "Senior Backend Engineer",
        "companyName": "Acme Corp",
        "companySlug": "acme-corp",
        "description": "Build and run the APIs behind our marketplace.",
        "requirements": ["5+ years of Python", "Postgres in production"],
        "benefits": ["Remote budget", "Learning stipend"],
        "skills": ["python", "postgres", "kubernetes"],
        "location": "Berlin, Germany",
        "locationType": "Remote",
        "employmentType": "Full-time",
        "experienceLevel": "Senior",
        "salaryMin": 90000,
        "salaryMax": 120000,
        "salaryCurrency": "EUR",
        "applyURL": "https://acme.example.com/careers/backend",
        "source": "linkedin",
        "sourceURL": "https://www.linkedin.com/jobs/view/12345",
    }


@pytest.fixture
def make_record():
    """Factory for distinct minimal import records."""
    def _make(i: int = 0, **overrides) -> Dict[str, Any]:
        record = {
            "title": f"Backend Engineer {i}",
            "companyName": "Acme Corp",
            "description": f"Own service number {i} end to end.",
            "skills": ["python", "postgres"],
            "locationType": "Remote",
            "employmentType": "Full-time",
            "experienceLevel": "Mid",
            "source": "direct",
        }
        record.update(overrides)
        return record
    return _make


@pytest.fixture
def add_company(db_session):
    def _add(name: str = "Acme Corp", slug: str = "acme-corp", **kwargs) -> Company:
        company = Company(name=name, slug=slug, **kwargs)
        db_session.add(company)
        db_session.commit()
        return company
    return _add


@pytest.fixture
def add_job(db_session):
    """Insert a job directly, bypassing ingestion."""
    def _add(company: Company, title: str = "Engineer", **kwargs) -> Job:
        fields = {
            "title": title,
            "slug": kwargs.pop("slug", title.lower().replace(" ", "-")),
            "description": kwargs.pop("description", f"{title} description"),
            "content_hash": kwargs.pop("content_hash", hashlib.sha256(title.encode()).hexdigest()),
            "skills": kwargs.pop("skills", []),
            "location_type": kwargs.pop("location_type", LocationType.ON_SITE),
            "employment_type": kwargs.pop("employment_type", EmploymentType.FULL_TIME),
            "experience_level": kwargs.pop("experience_level", ExperienceLevel.MID),
            "posted_at": kwargs.pop("posted_at", datetime.now()),
        }
        fields.update(kwargs)
        job = Job(company_id=company.id, **fields)
        db_session.add(job)
        db_session.commit()
        return job
    return _add


@pytest.fixture
def add_profile(db_session):
    def _add(username: str = "alice", **kwargs) -> Profile:
        profile = Profile(username=username, **kwargs)
        db_session.add(profile)
        db_session.commit()
        return profile
    return _add
