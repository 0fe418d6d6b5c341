from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, Sequence

from kealthy.blog.records import BlogRecord

ELLIPSIS = "..."
MAX_VISIBLE_PAGES = 5


class TimeWindow(Enum):
    ALL = ("all", "All Time", None)
    LAST_WEEK = ("lastWeek", "Last Week", 7)
    LAST_MONTH = ("lastMonth", "Last Month", 30)

    def __init__(self, key: str, label: str, days: int | None):
        self.key = key
        self.label = label
        self.days = days

    @classmethod
    def parse(cls, value: "str | TimeWindow | None") -> "TimeWindow":
        if isinstance(value, TimeWindow):
            return value

        for window in cls:
            if window.key == value:
                return window

        return cls.ALL


def filter_by_window(
    records: Iterable[BlogRecord], window: TimeWindow, now: datetime | None = None
) -> list[BlogRecord]:
    """Keep records created within ``[now - window, now]``.

    Records whose timestamp can't be resolved only survive the ``ALL`` window.
    """
    if window.days is None:
        return list(records)

    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=window.days)
    filtered = []
    for record in records:
        created = record.created
        if created is not None and start <= created <= now:
            filtered.append(record)

    return filtered


def _contains(text: str | None, query: str) -> bool:
    return bool(text) and query in text.casefold()


def search_records(records: Iterable[BlogRecord], query: str | None) -> list[BlogRecord]:
    """Case-insensitive substring match over title, content and tags."""
    needle = (query or "").strip().casefold()
    if not needle:
        return list(records)

    return [
        record
        for record in records
        if _contains(record.title, needle)
        or _contains(record.content, needle)
        or any(_contains(tag, needle) for tag in record.tags)
    ]


def total_pages(count: int, page_size: int) -> int:
    return -(-count // page_size)


def paginate[T](items: Sequence[T], page: int, page_size: int) -> list[T]:
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


def page_numbers(current: int, total: int) -> list[int | str]:
    """Page strip with :data:`ELLIPSIS` gaps once there are more than five pages."""
    if total <= MAX_VISIBLE_PAGES:
        return list(range(1, total + 1))

    if current <= 3:
        return [1, 2, 3, 4, ELLIPSIS, total]

    if current >= total - 2:
        return [1, ELLIPSIS, *range(total - 3, total + 1)]

    return [1, ELLIPSIS, current - 1, current, current + 1, ELLIPSIS, total]
