"""Page handlers for the landing page, blog views and newsletter form."""
import logging

from bevy import Inject, injectable
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import RedirectResponse

from kealthy.blog.filters import TimeWindow
from kealthy.blog.store import BlogStore
from kealthy.blog.views import BlogPage
from kealthy.navigation import local_path
from kealthy.router import Router
from kealthy.sessions import PageSession
from kealthy.subscriptions import SubscriptionClient

logger = logging.getLogger(__name__)

router = Router()


def _session(request: Request) -> PageSession:
    return request.state.page_session


async def _mounted_page(request: Request, store: BlogStore) -> BlogPage:
    page = _session(request).blog
    await page.ensure_mounted(store)
    return page


def _redirect(target: str) -> RedirectResponse:
    return RedirectResponse(target, status_code=303)


@router.get("/")
@injectable
async def landing(request: Request):
    return "landing.html", {}


@router.get("/blog")
@injectable
async def blog_grid(request: Request, store: Inject[BlogStore]):
    page = _session(request).blog
    await page.load(store)
    return "blog.html", {"page": page}


@router.post("/blog/more")
@injectable
async def blog_see_more(request: Request, store: Inject[BlogStore]):
    page = await _mounted_page(request, store)
    page.see_more()
    page.keep_state()
    return _redirect("/blog")


@router.get("/blog/list")
@injectable
async def blog_list(request: Request, store: Inject[BlogStore]):
    page = await _mounted_page(request, store)
    view = page.list_view
    params = request.query_params
    changed = view.update_filters(params.get("q", view.search_term), params.get("window", view.time_filter.key))
    if not changed and params.get("page"):
        try:
            view.go_to_page(int(params["page"]))
        except ValueError:
            logger.debug(f"Ignoring invalid page number {params['page']!r}")

    return "blog_list.html", {"page": page, "view": view, "results": view.results(), "windows": list(TimeWindow)}


@router.post("/blog/list/clear")
@injectable
async def blog_list_clear(request: Request):
    _session(request).blog.list_view.clear_filters()
    return _redirect("/blog/list")


@router.post("/blog/{blog_id}/like")
@injectable
async def blog_like(request: Request, blog_id: str, store: Inject[BlogStore]):
    page = await _mounted_page(request, store)
    page.toggle_like(blog_id)
    page.keep_state()
    form = await request.form()
    return _redirect(local_path(form.get("next"), default="/blog"))


@router.get("/blog/{blog_id}")
@injectable
async def blog_detail(request: Request, blog_id: str, store: Inject[BlogStore]):
    page = await _mounted_page(request, store)
    record = page.find(blog_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No blog post with id '{blog_id}'")

    return "blog_detail.html", {"record": record}


@router.post("/subscribe")
@injectable
async def subscribe(request: Request, client: Inject[SubscriptionClient]):
    form = await request.form()
    await _session(request).subscription.submit(form.get("email", ""), client)
    return _redirect(local_path(form.get("next")))
