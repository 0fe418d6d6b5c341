from kealthy.blog.filters import TimeWindow, filter_by_window, page_numbers, paginate, search_records
from kealthy.blog.records import BlogRecord, normalize_timestamp
from kealthy.blog.views import BlogListView, BlogPage

__all__ = [
    "BlogListView",
    "BlogPage",
    "BlogRecord",
    "TimeWindow",
    "filter_by_window",
    "normalize_timestamp",
    "page_numbers",
    "paginate",
    "search_records",
]
