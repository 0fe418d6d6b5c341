"""Blog records and timestamp normalization.

Documents coming back from the store carry ``createdAt`` in whatever shape the
writer used: a store-native timestamp object, a ``datetime``, a mapping with a
``seconds`` field, epoch milliseconds, or a date string. Everything downstream
works with :func:`normalize_timestamp`, which folds those into an aware UTC
``datetime`` or ``None`` when the value cannot be understood.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from numbers import Real
from typing import Any, Callable, Mapping

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "/static/images/placeholder.svg"
UNKNOWN_DATE_TEXT = "Recent"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)

    return value.astimezone(timezone.utc)


def _from_conversion_method(value: Any) -> datetime | None:
    for name in ("to_datetime", "ToDatetime"):
        convert = getattr(value, name, None)
        if callable(convert):
            converted = convert()
            if isinstance(converted, datetime):
                return _as_utc(converted)

    return None


def _from_datetime(value: Any) -> datetime | None:
    match value:
        case datetime():
            return _as_utc(value)

        case date():
            return datetime.combine(value, time(), tzinfo=timezone.utc)

        case _:
            return None


def _from_seconds_field(value: Any) -> datetime | None:
    if isinstance(value, Mapping):
        seconds = value.get("seconds")
        nanoseconds = value.get("nanoseconds", 0)
    else:
        seconds = getattr(value, "seconds", None)
        nanoseconds = getattr(value, "nanoseconds", 0)

    if not seconds or isinstance(seconds, bool) or not isinstance(seconds, Real):
        return None

    if not isinstance(nanoseconds, Real) or isinstance(nanoseconds, bool):
        nanoseconds = 0

    return datetime.fromtimestamp(seconds + nanoseconds / 1_000_000_000, tz=timezone.utc)


def _from_epoch_millis(value: Any) -> datetime | None:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None

    if not math.isfinite(value):
        return None

    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def _from_string(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None

    return _as_utc(date_parser.parse(value))


_PROBES: tuple[Callable[[Any], datetime | None], ...] = (
    _from_conversion_method,
    _from_datetime,
    _from_seconds_field,
    _from_epoch_millis,
    _from_string,
)


def normalize_timestamp(value: Any) -> datetime | None:
    """Resolve a stored timestamp of unknown shape to an aware UTC datetime.

    Representations are probed in a fixed order and the first one producing a
    valid datetime wins. Returns ``None`` when nothing matches; never raises.
    """
    if value is None:
        return None

    for probe in _PROBES:
        try:
            resolved = probe(value)
        except Exception as e:
            logger.debug(f"Timestamp probe {probe.__name__} rejected {value!r}: {e}")
            continue

        if resolved is not None:
            return resolved

    return None


@dataclass
class BlogRecord:
    """View-model for one blog post.

    ``liked`` and ``likes`` only live in memory for the page session; they are
    never written back to the store.
    """
    id: str
    title: str = ""
    content: str = ""
    tags: list[str] = field(default_factory=list)
    image_urls: list[str] = field(default_factory=list)
    created_at: Any = None
    liked: bool = False
    likes: int = 0

    @property
    def created(self) -> datetime | None:
        return normalize_timestamp(self.created_at)

    def cover_image(self, placeholder: str = PLACEHOLDER_IMAGE) -> str:
        return self.image_urls[0] if self.image_urls else placeholder

    def toggle_like(self):
        if self.liked:
            self.likes -= 1
        else:
            self.likes += 1

        self.liked = not self.liked


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []

    return [item for item in value if isinstance(item, str)]


def record_from_document(record_id: str, data: Mapping[str, Any], likes: int = 0) -> BlogRecord:
    """Map a raw store document onto a :class:`BlogRecord`."""
    return BlogRecord(
        id=str(record_id),
        title=data.get("title") or "",
        content=data.get("content") or "",
        tags=_string_list(data.get("tags")),
        image_urls=_string_list(data.get("imageUrls")),
        created_at=data.get("createdAt"),
        likes=likes,
    )


def format_long_date(value: Any) -> str:
    """``Monday, January 1, 2024`` or ``Recent``."""
    resolved = normalize_timestamp(value)
    if resolved is None:
        return UNKNOWN_DATE_TEXT

    return f"{resolved:%A, %B} {resolved.day}, {resolved.year}"


def format_short_date(value: Any) -> str:
    """``Jan 5`` or ``Recent``."""
    resolved = normalize_timestamp(value)
    if resolved is None:
        return UNKNOWN_DATE_TEXT

    return f"{resolved:%b} {resolved.day}"
