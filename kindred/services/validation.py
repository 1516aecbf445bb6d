"""Explicit input checks run by services before anything is persisted."""

from __future__ import annotations

import re
from datetime import date, datetime, time as dt_time, timezone
from typing import Any, List, Optional
from urllib.parse import urlparse

from ..errors import ValidationFailed
from ..models.message import MAX_MESSAGE_LENGTH, MESSAGE_TYPES
from ..models.profile import age_from_dob

GENDERS = ("male", "female", "non-binary", "other")
MIN_AGE = 18
MAX_INTERESTS = 10
MAX_INTEREST_LENGTH = 30
MAX_BIO_LENGTH = 500
MAX_PHOTOS = 9
MAX_PAGE_SIZE = 100
MAX_DISTANCE_KM = 20_000.0

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
_PHONE_RE = re.compile(r"^\+?[\d\s-]+$")


def clean_str(value: Any, max_len: Optional[int] = None) -> Optional[str]:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if max_len is not None and len(text) > max_len:
            text = text[:max_len]
        return text
    return None


def validate_name(value: Any) -> str:
    name = clean_str(value)
    if not name or not 2 <= len(name) <= 50:
        raise ValidationFailed("name must be between 2 and 50 characters")
    return name


def validate_email(value: Any) -> str:
    email = clean_str(value)
    if not email or not _EMAIL_RE.match(email):
        raise ValidationFailed("please provide a valid email")
    return email.lower()


def validate_phone(value: Any) -> Optional[str]:
    phone = clean_str(value)
    if phone is None:
        return None
    if not _PHONE_RE.match(phone):
        raise ValidationFailed("please provide a valid phone number")
    return phone


def validate_gender(value: Any) -> str:
    if value not in GENDERS:
        raise ValidationFailed("please select a valid gender")
    return value


def validate_dob(value: date | datetime) -> datetime:
    """Normalise a date of birth to a UTC datetime and enforce the minimum age."""
    if isinstance(value, datetime):
        dob = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    else:
        dob = datetime.combine(value, dt_time.min, tzinfo=timezone.utc)
    if dob > datetime.now(timezone.utc):
        raise ValidationFailed("date of birth is in the future")
    if age_from_dob(dob) < MIN_AGE:
        raise ValidationFailed(f"you must be at least {MIN_AGE} years old")
    return dob


def validate_bio(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationFailed("bio must be text")
    bio = value.strip()
    if len(bio) > MAX_BIO_LENGTH:
        raise ValidationFailed(f"bio cannot exceed {MAX_BIO_LENGTH} characters")
    return bio


def validate_interests(raw: Any) -> List[str]:
    if not isinstance(raw, (list, tuple)):
        raise ValidationFailed("interests must be a list")
    interests: List[str] = []
    for entry in raw:
        cleaned = clean_str(entry)
        if not cleaned or cleaned in interests:
            continue
        if len(cleaned) > MAX_INTEREST_LENGTH:
            raise ValidationFailed(f"each interest cannot exceed {MAX_INTEREST_LENGTH} characters")
        interests.append(cleaned)
    if len(interests) > MAX_INTERESTS:
        raise ValidationFailed(f"maximum {MAX_INTERESTS} interests allowed")
    return interests


def validate_photo_url(value: Any) -> str:
    url = clean_str(value, max_len=512)
    if not url:
        raise ValidationFailed("photo URL is required")
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationFailed("photo URL must be an http(s) URL")
    return url


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise ValidationFailed("latitude and longitude must be numbers") from None
    if not -90.0 <= lat <= 90.0:
        raise ValidationFailed("latitude must be between -90 and 90")
    if not -180.0 <= lon <= 180.0:
        raise ValidationFailed("longitude must be between -180 and 180")
    return lat, lon


def validate_pagination(page: int, page_size: int) -> tuple[int, int]:
    """Return ``(skip, limit)`` for a 1-based page."""
    if page < 1:
        raise ValidationFailed("page must be a positive integer")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationFailed(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return (page - 1) * page_size, page_size


def validate_max_distance(max_distance_km: float) -> float:
    if not 0 < max_distance_km <= MAX_DISTANCE_KM:
        raise ValidationFailed(f"maxDistance must be between 0 and {int(MAX_DISTANCE_KM)} km")
    return float(max_distance_km)


def validate_message(body: Any, message_type: Any) -> tuple[str, str]:
    text = body.strip() if isinstance(body, str) else ""
    if not 1 <= len(text) <= MAX_MESSAGE_LENGTH:
        raise ValidationFailed(f"message must be between 1 and {MAX_MESSAGE_LENGTH} characters")
    kind = message_type or "text"
    if kind not in MESSAGE_TYPES:
        raise ValidationFailed("invalid message type")
    return text, kind


__all__ = [
    "GENDERS",
    "MAX_PAGE_SIZE",
    "MAX_PHOTOS",
    "MIN_AGE",
    "clean_str",
    "validate_bio",
    "validate_coordinates",
    "validate_dob",
    "validate_email",
    "validate_gender",
    "validate_interests",
    "validate_max_distance",
    "validate_message",
    "validate_name",
    "validate_pagination",
    "validate_phone",
    "validate_photo_url",
]
