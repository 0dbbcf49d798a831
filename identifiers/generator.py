"""
Purpose: Type-tagged, date-embedding identifiers for every entity in the platform.
What it does:

Mints IDs shaped like `job-240101-a1b2c`:
- prefix: short fixed tag per entity kind (IdType)
- YYMMDD: UTC creation date
- 5-char suffix mixing lowercase hex and mixed-case alphanumerics

Parses and validates them (fail closed) and answers "when was this created" /
"is this recent" questions from the embedded date.

Rule: No storage lookups. Collision resistance is practical, not guaranteed.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

HEX_CHARS = "0123456789abcdef"
ALNUM_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits

SUFFIX_LENGTH = 5
DATE_LENGTH = 6


class IdType(str, Enum):
    USER = "usr"
    DRIVER = "drv"
    JOB = "job"
    VEHICLE = "veh"
    PAYMENT = "pay"
    ADDRESS = "add"
    NOTIFICATION = "not"
    SUPPORT_TICKET = "tic"
    VERIFICATION = "ver"
    REWARD = "rew"

    @classmethod
    def from_prefix(cls, prefix: str) -> Optional[IdType]:
        for id_type in cls:
            if id_type.value == prefix:
                return id_type
        return None


@dataclass(frozen=True)
class ParsedId:
    """
    The structured pieces of an identifier. `year` is the full year (20YY).
    """
    id_type: IdType
    year: int
    month: int
    day: int
    random_suffix: str

    def to_datetime(self) -> Optional[datetime]:
        """
        UTC midnight of the embedded date, or None when the date passes the
        1-12 / 1-31 range check but does not exist (e.g. Feb 31).
        """
        try:
            return datetime(self.year, self.month, self.day, tzinfo=timezone.utc)
        except ValueError:
            return None


def _random_chars(charset: str, length: int) -> str:
    return "".join(random.choice(charset) for _ in range(length))


def _random_suffix() -> str:
    # 50/50 split between "hex first" and "alnum first" layouts
    if random.random() < 0.5:
        return _random_chars(HEX_CHARS, 3) + _random_chars(ALNUM_CHARS, 2)
    return _random_chars(ALNUM_CHARS, 3) + _random_chars(HEX_CHARS, 2)


def _utc(timestamp: Optional[datetime]) -> datetime:
    if timestamp is None:
        return datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def generate_id(id_type: IdType, timestamp: Optional[datetime] = None) -> str:
    """
    Mint a new identifier for `id_type`.

    `timestamp` pins the embedded date (tests inject it instead of mocking
    the clock); defaults to now in UTC.
    """
    stamp = _utc(timestamp)
    return f"{id_type.value}-{stamp.strftime('%y%m%d')}-{_random_suffix()}"


def generate_batch(id_type: IdType, count: int, timestamp: Optional[datetime] = None) -> List[str]:
    if count < 0:
        raise ValueError("count must be >= 0")
    stamp = _utc(timestamp)
    return [generate_id(id_type, stamp) for _ in range(count)]


def generate_readable_id(id_type: IdType, timestamp: Optional[datetime] = None) -> str:
    """
    Short display form `{prefix}-{YYMM}-{4 alnum}` for receipts and support chats.
    Not accepted by `parse_id`.
    """
    stamp = _utc(timestamp)
    return f"{id_type.value}-{stamp.strftime('%y%m')}-{_random_chars(ALNUM_CHARS, 4)}"


def _is_ascii_digits(value: str) -> bool:
    return all(ch in string.digits for ch in value)


def _is_ascii_alnum(value: str) -> bool:
    return all(ch in ALNUM_CHARS for ch in value)


def parse_id(value: str) -> Optional[ParsedId]:
    """
    Break an identifier into its parts. Returns None for anything malformed:
    wrong field count, unknown prefix, non-numeric or wrong-width date,
    wrong-width suffix, month outside 1-12 or day outside 1-31.
    """
    if not isinstance(value, str):
        return None

    parts = value.split("-")
    if len(parts) != 3:
        return None

    prefix, date_part, suffix = parts

    id_type = IdType.from_prefix(prefix)
    if id_type is None:
        return None

    if len(date_part) != DATE_LENGTH or not _is_ascii_digits(date_part):
        return None

    if len(suffix) != SUFFIX_LENGTH or not _is_ascii_alnum(suffix):
        return None

    year = 2000 + int(date_part[0:2])
    month = int(date_part[2:4])
    day = int(date_part[4:6])

    if not 1 <= month <= 12:
        return None
    if not 1 <= day <= 31:
        return None

    return ParsedId(id_type=id_type, year=year, month=month, day=day, random_suffix=suffix)


def validate_id(value: str, expected_type: Optional[IdType] = None) -> bool:
    parsed = parse_id(value)
    if parsed is None:
        return False
    if expected_type is not None and parsed.id_type != expected_type:
        return False
    return True


def parse_creation_date(value: str) -> Optional[datetime]:
    parsed = parse_id(value)
    if parsed is None:
        return None
    return parsed.to_datetime()


def is_id_recent(value: str, max_age_days: int, now: Optional[datetime] = None) -> Optional[bool]:
    """
    True if the ID was minted within `max_age_days` of `now`.
    None when the ID carries no usable date.
    """
    created = parse_creation_date(value)
    if created is None:
        return None
    return _utc(now) - created <= timedelta(days=max_age_days)
