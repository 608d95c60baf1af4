from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type


def normalize_text(s: Optional[str]) -> str:
    return " ".join((s or "").strip().lower().split())


def slugify(text: str) -> str:
    """Lowercase, hyphenate spaces and drop anything but letters, digits and hyphens."""
    lowered = (text or "").lower().replace(" ", "-")
    return "".join(ch for ch in lowered if ch.isalnum() or ch == "-")


class LocationType(Enum):
    REMOTE = "Remote"
    HYBRID = "Hybrid"
    ON_SITE = "On-site"


class EmploymentType(Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    INTERNSHIP = "Internship"


class ExperienceLevel(Enum):
    ENTRY = "Entry"
    MID = "Mid"
    SENIOR = "Senior"
    LEAD = "Lead"
    EXECUTIVE = "Executive"


REMOTE_SYNS = {"remote", "remote - us", "remote - usa", "fully remote", "anywhere", "work from home", "wfh"}
HYBRID_SYNS = {"hybrid", "flexible", "part-remote"}
ONSITE_SYNS = {"onsite", "on-site", "on site", "in office", "in-office", "office"}

FULL_TIME_SYNS = {"full-time", "full time", "fulltime", "permanent"}
PART_TIME_SYNS = {"part-time", "part time", "parttime"}
CONTRACT_SYNS = {"contract", "contractor", "freelance", "temporary"}
INTERNSHIP_SYNS = {"internship", "intern"}

ENTRY_SYNS = {"entry", "entry level", "entry-level", "junior", "graduate"}
MID_SYNS = {"mid", "mid level", "mid-level", "intermediate"}
SENIOR_SYNS = {"senior", "sr", "senior level"}
LEAD_SYNS = {"lead", "principal", "staff"}
EXECUTIVE_SYNS = {"executive", "director", "vp", "c-level"}

LOCATION_TYPE_SYNONYMS = {
    **{s: LocationType.REMOTE for s in REMOTE_SYNS},
    **{s: LocationType.HYBRID for s in HYBRID_SYNS},
    **{s: LocationType.ON_SITE for s in ONSITE_SYNS},
}
EMPLOYMENT_TYPE_SYNONYMS = {
    **{s: EmploymentType.FULL_TIME for s in FULL_TIME_SYNS},
    **{s: EmploymentType.PART_TIME for s in PART_TIME_SYNS},
    **{s: EmploymentType.CONTRACT for s in CONTRACT_SYNS},
    **{s: EmploymentType.INTERNSHIP for s in INTERNSHIP_SYNS},
}
EXPERIENCE_LEVEL_SYNONYMS = {
    **{s: ExperienceLevel.ENTRY for s in ENTRY_SYNS},
    **{s: ExperienceLevel.MID for s in MID_SYNS},
    **{s: ExperienceLevel.SENIOR for s in SENIOR_SYNS},
    **{s: ExperienceLevel.LEAD for s in LEAD_SYNS},
    **{s: ExperienceLevel.EXECUTIVE for s in EXECUTIVE_SYNS},
}

DEFAULT_LOCATION_TYPE = LocationType.REMOTE
DEFAULT_EMPLOYMENT_TYPE = EmploymentType.FULL_TIME
DEFAULT_EXPERIENCE_LEVEL = ExperienceLevel.MID


@dataclass(frozen=True)
class EnumParse:
    """Outcome of parsing free text into a closed enumeration.

    ``recognized`` is False only when a value was supplied and matched nothing,
    in which case ``value`` holds the default.
    """

    value: Enum
    recognized: bool
    raw: Optional[str] = None


def _parse_enum(raw: Optional[str], enum_cls: Type[Enum], synonyms: Dict[str, Enum], default: Enum) -> EnumParse:
    if raw is None or not str(raw).strip():
        return EnumParse(default, True, raw)
    key = normalize_text(str(raw))
    for member in enum_cls:
        if member.value.lower() == key:
            return EnumParse(member, True, raw)
    if key in synonyms:
        return EnumParse(synonyms[key], True, raw)
    return EnumParse(default, False, raw)


def parse_location_type(raw: Optional[str]) -> EnumParse:
    return _parse_enum(raw, LocationType, LOCATION_TYPE_SYNONYMS, DEFAULT_LOCATION_TYPE)


def parse_employment_type(raw: Optional[str]) -> EnumParse:
    return _parse_enum(raw, EmploymentType, EMPLOYMENT_TYPE_SYNONYMS, DEFAULT_EMPLOYMENT_TYPE)


def parse_experience_level(raw: Optional[str]) -> EnumParse:
    return _parse_enum(raw, ExperienceLevel, EXPERIENCE_LEVEL_SYNONYMS, DEFAULT_EXPERIENCE_LEVEL)


def normalize_skills(skills) -> set:
    return {normalize_text(s) for s in (skills or []) if isinstance(s, str) and s.strip()}
