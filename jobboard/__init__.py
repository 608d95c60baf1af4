"""JobBoard: profile-to-job matching and deduplicating bulk job ingestion."""

__version__ = "0.1.0"
