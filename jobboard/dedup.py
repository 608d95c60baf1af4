"""
Content fingerprints for job deduplication.

A fingerprint is a SHA-256 digest over the normalized title, company name and
the first 500 characters of the normalized description. Normalization
lowercases, drops punctuation and collapses whitespace, so two submissions
differing only in casing, punctuation or spacing share one fingerprint.
"""

import hashlib
from typing import Tuple

from rapidfuzz.distance import Levenshtein

DESCRIPTION_PREFIX_CHARS = 500
TITLE_SIMILARITY_THRESHOLD = 0.85


def fingerprint_text(text: str) -> str:
    lowered = (text or "").lower()
    kept = "".join(ch for ch in lowered if ch.isalnum() or ch.isspace())
    return " ".join(kept.split())


def compute_content_hash(title: str, company_name: str, description: str) -> str:
    """
    Compute the deduplication fingerprint for a posting.

    Args:
        title: Job title as submitted
        company_name: Free-text company name as submitted
        description: Job description (may be empty)

    Returns:
        64-character lowercase hex digest
    """
    content = "|".join([
        fingerprint_text(title),
        fingerprint_text(company_name),
        fingerprint_text(description)[:DESCRIPTION_PREFIX_CHARS],
    ])
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def title_similarity(s1: str, s2: str) -> float:
    """Similarity ratio in [0, 1]: 1 - edit distance / longer length."""
    return Levenshtein.normalized_similarity(s1, s2)


def are_likely_duplicates(
    job1: Tuple[str, str, str],
    job2: Tuple[str, str, str],
) -> bool:
    """
    Check whether two (title, company, description) triples describe the same posting.

    Exact fingerprint equality always counts. Otherwise the same company with a
    near-identical title (similarity above 0.85) counts as a likely duplicate.
    """
    if compute_content_hash(*job1) == compute_content_hash(*job2):
        return True

    if fingerprint_text(job1[1]) != fingerprint_text(job2[1]):
        return False

    similarity = title_similarity(fingerprint_text(job1[0]), fingerprint_text(job2[0]))
    return similarity > TITLE_SIMILARITY_THRESHOLD
