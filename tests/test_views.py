from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest

from kealthy.blog.filters import ELLIPSIS, TimeWindow, filter_by_window
from kealthy.blog.records import BlogRecord
from kealthy.blog.store import BlogConfig, InMemoryBlogStore
from kealthy.blog.views import BlogListView, BlogPage
from tests.helpers import FlakyStore, blog_documents


def make_records(count: int) -> list[BlogRecord]:
    now = datetime.now(timezone.utc)
    return [
        BlogRecord(
            f"post-{index}",
            title=f"Post {index}",
            content="Recipes" if index % 2 else "Wellness",
            created_at=now - timedelta(days=index * 3, hours=1),
        )
        for index in range(1, count + 1)
    ]


@pytest.fixture
def records() -> list[BlogRecord]:
    return make_records(12)


@pytest.fixture
def view(records) -> BlogListView:
    return BlogListView(lambda: records, page_size=5)


class TestBlogListView:
    def test_first_page(self, view):
        results = view.results()

        assert [r.id for r in results.records] == [f"post-{i}" for i in range(1, 6)]
        assert results.has_previous is False
        assert results.has_next is True
        assert (results.first, results.last, results.count) == (1, 5, 12)

    def test_last_page(self, view):
        view.go_to_page(3)
        results = view.results()

        assert [r.id for r in results.records] == ["post-11", "post-12"]
        assert results.has_next is False
        assert results.has_previous is True
        assert (results.first, results.last, results.count) == (11, 12, 12)

    def test_next_and_previous_stop_at_the_edges(self, view):
        view.previous_page()
        assert view.current_page == 1

        for _ in range(5):
            view.next_page()

        assert view.current_page == 3

    def test_go_to_page_is_clamped(self, view):
        view.go_to_page(99)
        assert view.current_page == 3

        view.go_to_page(-4)
        assert view.current_page == 1

    def test_search_change_resets_page(self, view):
        view.go_to_page(3)

        assert view.set_search_term("post") is True
        assert view.current_page == 1

    def test_window_change_resets_page(self, view):
        view.go_to_page(2)

        assert view.set_time_filter("lastMonth") is True
        assert view.current_page == 1
        # Records every three days: posts 1-9 fall inside thirty days
        assert len(view.filtered()) == 9

    def test_unchanged_filters_keep_the_page(self, view):
        view.go_to_page(2)

        assert view.update_filters("", "all") is False
        assert view.current_page == 2

    def test_filters_apply_window_then_search(self, view):
        view.update_filters("recipes", TimeWindow.LAST_WEEK)

        # Only posts 1 and 2 are within a week; of those only post 1 mentions recipes
        assert [r.id for r in view.filtered()] == ["post-1"]

    def test_empty_states(self, view):
        view.set_time_filter(TimeWindow.LAST_WEEK)
        view.set_search_term("pizza")

        assert view.results().records == []
        assert view.has_active_filters is True
        assert view.empty_message == "Try adjusting your search criteria."

        view.set_search_term("")
        view.set_time_filter("lastWeek")
        assert view.empty_message == "No blogs match the selected filter."

    def test_clear_filters(self, view):
        view.update_filters("pizza", "lastWeek")
        view.clear_filters()

        assert view.search_term == ""
        assert view.time_filter is TimeWindow.ALL
        assert view.has_active_filters is False
        assert len(view.filtered()) == 12

    def test_page_numbers_with_many_pages(self):
        records = make_records(40)
        view = BlogListView(lambda: records, page_size=5)
        view.go_to_page(5)

        assert view.results().page_numbers == [1, ELLIPSIS, 4, 5, 6, ELLIPSIS, 8]

    def test_url_carries_filters(self, view):
        view.update_filters("oats & honey", "lastMonth")
        url = urlparse(view.url(2))

        assert url.path == "/blog/list"
        assert parse_qs(url.query) == {"q": ["oats & honey"], "window": ["lastMonth"], "page": ["2"]}

    def test_reads_records_live(self, records, view):
        records.pop()
        assert view.results().count == 11

    def test_page_is_clamped_when_records_age_out(self, records, view):
        view.go_to_page(3)
        del records[10:]

        results = view.results()

        assert view.current_page == 2
        assert [r.id for r in results.records] == [f"post-{i}" for i in range(6, 11)]
        assert (results.first, results.last, results.count) == (6, 10, 10)

    def test_empty_results_stay_on_page_one(self, records, view):
        view.go_to_page(3)
        records.clear()

        results = view.results()

        assert results.page == 1
        assert results.records == []
        assert results.has_next is False

    def test_results_filter_once(self, view):
        with patch("kealthy.blog.views.filter_by_window", wraps=filter_by_window) as window_filter:
            results = view.results()
            results.records, results.page_numbers, results.has_next, results.last

        assert window_filter.call_count == 1


class TestBlogPage:
    @pytest.fixture
    def store(self) -> InMemoryBlogStore:
        return InMemoryBlogStore(blog_documents(8))

    @pytest.mark.asyncio
    async def test_mount_loads_records_newest_first(self, store):
        page = BlogPage()
        await page.mount(store)

        assert page.mounted is True
        assert [r.id for r in page.records] == [f"post-{i}" for i in range(1, 9)]
        assert all(r.likes == 0 and r.liked is False for r in page.records)

    @pytest.mark.asyncio
    async def test_grid_shows_three_and_grows_by_three(self, store):
        page = BlogPage()
        await page.mount(store)

        assert [r.id for r in page.displayed_records] == ["post-1", "post-2", "post-3"]
        assert page.remaining == 5

        page.see_more()
        assert len(page.displayed_records) == 6
        assert page.remaining == 2

        page.see_more()
        assert len(page.displayed_records) == 8
        assert page.remaining == 0

    @pytest.mark.asyncio
    async def test_grid_size_is_configurable(self, store):
        page = BlogPage(BlogConfig(grid_initial=2, grid_increment=4))
        await page.mount(store)
        page.see_more()

        assert len(page.displayed_records) == 6

    @pytest.mark.asyncio
    async def test_randomized_likes(self, store):
        page = BlogPage(BlogConfig(randomize_likes=True))
        await page.mount(store)

        assert all(0 <= r.likes < 50 for r in page.records)

    @pytest.mark.asyncio
    async def test_like_toggle_twice_restores_state(self, store):
        page = BlogPage()
        await page.mount(store)

        liked = page.toggle_like("post-2")
        assert (liked.liked, liked.likes) == (True, 1)
        assert page.list_view.filtered()[1].liked is True

        page.toggle_like("post-2")
        assert (liked.liked, liked.likes) == (False, 0)

    def test_like_unknown_record_is_ignored(self):
        page = BlogPage()
        assert page.toggle_like("missing") is None

    def test_find(self, records):
        page = BlogPage()
        page.records = records

        assert page.find("post-4") is records[3]
        assert page.find("post-99") is None


class TestBlogPageLoading:
    @pytest.mark.asyncio
    async def test_failed_fetch_is_logged_and_retried(self, caplog):
        store = FlakyStore(blog_documents(4))
        page = BlogPage()

        await page.ensure_mounted(store)
        assert page.records == []
        assert page.mounted is False
        assert "Error fetching blog posts" in caplog.text

        await page.ensure_mounted(store)
        assert [r.id for r in page.records] == ["post-1", "post-2", "post-3", "post-4"]
        assert page.mounted is True

        await page.ensure_mounted(store)
        assert store.calls == 2

    @pytest.mark.asyncio
    async def test_each_grid_visit_refetches_and_resets(self):
        store = InMemoryBlogStore(blog_documents(8))
        page = BlogPage()
        await page.load(store)
        page.toggle_like("post-1")
        page.see_more()

        store.documents.append(("fresh", {"title": "Fresh", "createdAt": datetime.now(timezone.utc).isoformat()}))
        await page.load(store)

        assert page.records[0].id == "fresh"
        assert page.find("post-1").liked is False
        assert len(page.displayed_records) == 3

    @pytest.mark.asyncio
    async def test_state_is_kept_across_the_redirect_after_a_post(self):
        store = InMemoryBlogStore(blog_documents(8))
        page = BlogPage()
        await page.load(store)
        page.toggle_like("post-1")
        page.keep_state()

        await page.load(store)
        assert page.find("post-1").liked is True

        await page.load(store)
        assert page.find("post-1").liked is False

    @pytest.mark.asyncio
    async def test_other_pages_clear_a_pending_keep(self):
        store = InMemoryBlogStore(blog_documents(2))
        page = BlogPage()
        await page.load(store)
        page.toggle_like("post-1")
        page.keep_state()

        await page.ensure_mounted(store)
        assert page.find("post-1").liked is True

        await page.load(store)
        assert page.find("post-1").liked is False
