from datetime import datetime
from typing import Any, List
from urllib.parse import urlparse

from .errors import ValidationError

REQUIRED_STR_FIELDS = ["title", "companyName"]
OPTIONAL_STR_FIELDS = [
    "companySlug",
    "description",
    "location",
    "locationType",
    "employmentType",
    "experienceLevel",
    "salaryCurrency",
    "applyURL",
    "source",
    "sourceURL",
]
OPTIONAL_LIST_FIELDS = ["requirements", "benefits", "skills"]
OPTIONAL_INT_FIELDS = ["salaryMin", "salaryMax"]
URL_FIELDS = ["applyURL", "sourceURL"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def parse_timestamp(v: Any):
    """Parse an ISO 8601 timestamp string, returning None when it is not one."""
    if not isinstance(v, str):
        return None
    try:
        return datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except ValueError:
        return False


def validate_import_record(data: Any) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Optional fields may be omitted or null.
    """
    if not isinstance(data, dict):
        return ["Record must be an object"]

    errors: List[str] = []

    # Required string fields
    for f in REQUIRED_STR_FIELDS:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    # Optional strings: if present, must be strings
    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    for f in OPTIONAL_LIST_FIELDS:
        v = data.get(f)
        if v is not None and not (isinstance(v, list) and all(isinstance(x, str) for x in v)):
            errors.append(f"Field '{f}' must be a list of strings if provided")

    for f in OPTIONAL_INT_FIELDS:
        v = data.get(f)
        if v is not None and not (_is_int(v) and v >= 0):
            errors.append(f"Field '{f}' must be a non-negative integer if provided")

    if _is_int(data.get("salaryMin")) and _is_int(data.get("salaryMax")):
        if data["salaryMin"] > data["salaryMax"]:
            errors.append("Field 'salaryMin' must not exceed 'salaryMax'")

    if data.get("expiresAt") is not None and parse_timestamp(data["expiresAt"]) is None:
        errors.append("Field 'expiresAt' must be an ISO 8601 timestamp if provided")

    # URL shape if present
    for f in URL_FIELDS:
        if isinstance(data.get(f), str) and data[f].strip():
            if not _valid_url(data[f]):
                errors.append(f"Field '{f}' must be a valid absolute URL (scheme + host)")

    return errors


def validate_batch(records: Any) -> None:
    """Reject a batch that is not a non-empty list. Row contents are checked later, per row."""
    if not isinstance(records, list):
        raise ValidationError("Import batch must be a list of records")
    if not records:
        raise ValidationError("Import batch is empty")
