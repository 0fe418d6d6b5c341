"""Per-session state behind the blog grid and list views."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from urllib.parse import urlencode

from kealthy.blog.filters import (
    TimeWindow,
    filter_by_window,
    page_numbers,
    paginate,
    search_records,
    total_pages,
)
from kealthy.blog.records import BlogRecord
from kealthy.blog.store import BlogConfig, BlogStore, load_records, random_likes

logger = logging.getLogger(__name__)


@dataclass
class ListResults:
    """One evaluation of the list filters, shared by everything a single render shows."""
    filtered: list[BlogRecord]
    page: int
    page_size: int

    @property
    def count(self) -> int:
        return len(self.filtered)

    @property
    def total_pages(self) -> int:
        return total_pages(self.count, self.page_size)

    @property
    def records(self) -> list[BlogRecord]:
        return paginate(self.filtered, self.page, self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def page_numbers(self) -> list[int | str]:
        return page_numbers(self.page, self.total_pages)

    @property
    def first(self) -> int:
        return (self.page - 1) * self.page_size + 1 if self.count else 0

    @property
    def last(self) -> int:
        return min(self.page * self.page_size, self.count)


class BlogListView:
    """Searchable, filterable, paginated list over the page's records.

    Any change to the search text or the time window moves back to page one.
    """

    def __init__(self, records: Callable[[], list[BlogRecord]], page_size: int = 5):
        self._records = records
        self.page_size = page_size
        self.search_term = ""
        self.time_filter = TimeWindow.ALL
        self.current_page = 1

    def set_search_term(self, search_term: str | None) -> bool:
        search_term = search_term or ""
        if search_term == self.search_term:
            return False

        self.search_term = search_term
        self.current_page = 1
        return True

    def set_time_filter(self, time_filter: "TimeWindow | str | None") -> bool:
        time_filter = TimeWindow.parse(time_filter)
        if time_filter is self.time_filter:
            return False

        self.time_filter = time_filter
        self.current_page = 1
        return True

    def update_filters(self, search_term: str | None, time_filter: "TimeWindow | str | None") -> bool:
        changed_search = self.set_search_term(search_term)
        changed_window = self.set_time_filter(time_filter)
        return changed_search or changed_window

    def clear_filters(self):
        self.update_filters("", TimeWindow.ALL)

    def filtered(self, now: datetime | None = None) -> list[BlogRecord]:
        records = filter_by_window(self._records(), self.time_filter, now=now)
        return search_records(records, self.search_term)

    def results(self, now: datetime | None = None) -> ListResults:
        """Filter once and pin the current page inside the pages that still exist.

        Records can age out of a time window between requests, so the stored
        page is clamped here as well as in :meth:`go_to_page`.
        """
        filtered = self.filtered(now)
        self.current_page = min(max(self.current_page, 1), max(total_pages(len(filtered), self.page_size), 1))
        return ListResults(filtered, self.current_page, self.page_size)

    def go_to_page(self, page: int):
        self.current_page = page
        self.results()

    def next_page(self):
        if self.results().has_next:
            self.current_page += 1

    def previous_page(self):
        if self.results().has_previous:
            self.current_page -= 1

    def url(self, page: int | None = None, path: str = "/blog/list") -> str:
        """Link back to this list with the current filters, optionally on another page."""
        params = {"q": self.search_term, "window": self.time_filter.key, "page": page or self.current_page}
        return f"{path}?{urlencode(params)}"

    @property
    def has_active_filters(self) -> bool:
        return bool(self.search_term) or self.time_filter is not TimeWindow.ALL

    @property
    def empty_message(self) -> str:
        if self.search_term:
            return "Try adjusting your search criteria."

        return "No blogs match the selected filter."


class BlogPage:
    """Owns the records for one page session and the grid view state.

    A plain visit to the grid is a page load and fetches the records again,
    which also resets likes and the grid size. The redirect that follows a
    form post on the grid keeps the state built up so far.
    """

    def __init__(self, config: BlogConfig | None = None):
        self.config = config or BlogConfig()
        self.records: list[BlogRecord] = []
        self.blogs_to_show = self.config.grid_initial
        self.mounted = False
        self.keep_on_next_load = False
        self.list_view = BlogListView(lambda: self.records, page_size=self.config.page_size)

    async def mount(self, store: BlogStore):
        """Fetch the records, leaving the page unmounted when the store fails so the next visit retries."""
        likes = random_likes if self.config.randomize_likes else None
        self.blogs_to_show = self.config.grid_initial
        try:
            self.records = await load_records(store, likes=likes)
        except Exception:
            logger.exception("Error fetching blog posts")
            self.records = []
            self.mounted = False
            return

        self.mounted = True

    async def load(self, store: BlogStore):
        """Handle a visit to the grid."""
        keep = self.keep_on_next_load and self.mounted
        self.keep_on_next_load = False
        if not keep:
            await self.mount(store)

    async def ensure_mounted(self, store: BlogStore):
        """Handle a visit to a page that reads the already loaded records."""
        self.keep_on_next_load = False
        if not self.mounted:
            await self.mount(store)

    def keep_state(self):
        """Carry the current records over the redirect back to the grid."""
        self.keep_on_next_load = True

    @property
    def displayed_records(self) -> list[BlogRecord]:
        return self.records[:self.blogs_to_show]

    @property
    def remaining(self) -> int:
        return max(len(self.records) - self.blogs_to_show, 0)

    def see_more(self):
        self.blogs_to_show += self.config.grid_increment

    def find(self, record_id: str) -> BlogRecord | None:
        for record in self.records:
            if record.id == record_id:
                return record

        return None

    def toggle_like(self, record_id: str) -> BlogRecord | None:
        record = self.find(record_id)
        if record is None:
            logger.debug(f"Ignoring like for unknown blog post {record_id}")
            return None

        record.toggle_like()
        return record
