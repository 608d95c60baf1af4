"""Tests for the job expiration sweep."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from jobboard.cleanup import deactivate_expired_jobs
from jobboard.database import Job
from jobboard.errors import PersistenceError


NOW = datetime(2030, 1, 1, 12, 0)


class TestDeactivateExpiredJobs:
    """Test the expiration sweep."""

    def test_deactivates_only_expired(self, db_session, add_company, add_job):
        """Jobs past expiry are deactivated; open-ended and future ones stay."""
        company = add_company()
        add_job(company, title="Expired", content_hash="h1", expires_at=NOW - timedelta(days=1))
        add_job(company, title="Future", content_hash="h2", expires_at=NOW + timedelta(days=1))
        add_job(company, title="Open Ended", content_hash="h3")

        count = deactivate_expired_jobs(db_session, now=NOW)

        assert count == 1
        db_session.expire_all()
        active = {j.title: j.is_active for j in db_session.query(Job)}
        assert active == {"Expired": False, "Future": True, "Open Ended": True}

    def test_rows_are_kept(self, db_session, add_company, add_job):
        """Expired jobs are deactivated, never deleted."""
        company = add_company()
        add_job(company, title="Expired", content_hash="h1", expires_at=NOW - timedelta(hours=1))

        deactivate_expired_jobs(db_session, now=NOW)

        assert db_session.query(Job).count() == 1

    def test_expiry_exactly_now_is_not_expired(self, db_session, add_company, add_job):
        company = add_company()
        add_job(company, title="Boundary", content_hash="h1", expires_at=NOW)

        assert deactivate_expired_jobs(db_session, now=NOW) == 0

    def test_already_inactive_not_counted(self, db_session, add_company, add_job):
        company = add_company()
        add_job(company, title="Old", content_hash="h1", is_active=False, expires_at=NOW - timedelta(days=3))

        assert deactivate_expired_jobs(db_session, now=NOW) == 0

    def test_second_sweep_is_noop(self, db_session, add_company, add_job):
        company = add_company()
        for i in range(3):
            add_job(company, title=f"Expired {i}", content_hash=f"h{i}", expires_at=NOW - timedelta(days=i + 1))

        assert deactivate_expired_jobs(db_session, now=NOW) == 3
        assert deactivate_expired_jobs(db_session, now=NOW) == 0

    def test_empty_database(self, db_session):
        assert deactivate_expired_jobs(db_session, now=NOW) == 0

    def test_storage_failure_raises_and_rolls_back(self, db_session, add_company, add_job, monkeypatch):
        company = add_company()
        add_job(company, title="Expired", content_hash="h1", expires_at=NOW - timedelta(days=1))

        def fail_commit():
            raise OperationalError("UPDATE jobs", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", fail_commit)

        with pytest.raises(PersistenceError, match="Expiration sweep failed"):
            deactivate_expired_jobs(db_session, now=NOW)

        monkeypatch.undo()
        db_session.expire_all()
        assert db_session.query(Job).one().is_active is True
