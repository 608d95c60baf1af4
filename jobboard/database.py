"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for company, job and profile storage. The unique
constraints on ``jobs.content_hash`` and ``companies.slug`` back deduplication
and race-safe company creation, so they live in the schema itself.
"""

import uuid
from datetime import datetime
from pathlib import Path

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from .normalize import EmploymentType, ExperienceLevel, LocationType

Base = declarative_base()

BUSY_TIMEOUT_SECONDS = 30


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_column(enum_cls, name: str):
    return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e], validate_strings=True)


class Company(Base):
    """Employer model."""

    __tablename__ = "companies"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    website = Column(String)
    location = Column(String)
    industry = Column(String)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    jobs = relationship("Job", back_populates="company")


class Job(Base):
    """Job posting model."""

    __tablename__ = "jobs"
    __table_args__ = (UniqueConstraint("company_id", "slug", name="uq_jobs_company_slug"),)

    id = Column(String, primary_key=True, default=_new_id)
    company_id = Column(String, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    slug = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    requirements = Column(JSON, nullable=False, default=list)
    benefits = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)
    location = Column(String)
    location_type = Column(_enum_column(LocationType, "location_type"), nullable=False, default=LocationType.REMOTE)
    employment_type = Column(_enum_column(EmploymentType, "employment_type"), nullable=False, default=EmploymentType.FULL_TIME)
    experience_level = Column(_enum_column(ExperienceLevel, "experience_level"), nullable=False, default=ExperienceLevel.MID)
    salary_min = Column(Integer)
    salary_max = Column(Integer)
    salary_currency = Column(String, default="USD")
    apply_url = Column(String)
    is_easy_apply = Column(Boolean, nullable=False, default=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    content_hash = Column(String, unique=True)  # sha256 of title|company|description
    source = Column(String)  # linkedin, indeed, direct, ...
    source_url = Column(String)
    posted_at = Column(DateTime, default=datetime.now, index=True)
    expires_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    company = relationship("Company", back_populates="jobs")


class Profile(Base):
    """User profile model; only the attributes used for matching plus identity."""

    __tablename__ = "profiles"

    id = Column(String, primary_key=True, default=_new_id)
    username = Column(String, nullable=False, unique=True)
    name = Column(String)
    bio = Column(Text)
    location = Column(String)
    skills = Column(JSON, nullable=False, default=list)
    desired_locations = Column(JSON, nullable=False, default=list)
    desired_location_types = Column(JSON, nullable=False, default=list)  # LocationType values
    desired_employment_types = Column(JSON, nullable=False, default=list)  # EmploymentType values
    desired_experience_level = Column(_enum_column(ExperienceLevel, "desired_experience_level"))
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def get_engine(db_path: Path):
    """
    Create a SQLite engine.

    pysqlite's implicit transaction handling is disabled and every transaction
    starts with BEGIN IMMEDIATE, so SAVEPOINTs nest inside a real transaction
    and concurrent writers wait on the busy timeout instead of failing early.

    Args:
        db_path: Path to SQLite database file
    """
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"timeout": BUSY_TIMEOUT_SECONDS, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session_factory(db_path: Path):
    """
    Build a session factory bound to one engine.

    Ingestion workers each open their own session from the same factory.

    Args:
        db_path: Path to SQLite database file

    Returns:
        sessionmaker
    """
    return sessionmaker(bind=get_engine(db_path), expire_on_commit=False)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    Session = get_session_factory(db_path)
    return Session()
