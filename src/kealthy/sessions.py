import logging
import secrets
from collections import OrderedDict
from dataclasses import dataclass, field

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from kealthy.blog.store import BlogConfig
from kealthy.blog.views import BlogPage
from kealthy.config import ConfigModel
from kealthy.subscriptions import SubscriptionForm

logger = logging.getLogger(__name__)


@dataclass
class SessionConfig(ConfigModel, model_key="sessions"):
    cookie_name: str = "kealthy_session"
    max_sessions: int = 1000


@dataclass
class PageSession:
    """Everything one browser keeps between requests."""
    token: str
    blog: BlogPage
    subscription: SubscriptionForm = field(default_factory=SubscriptionForm)


class InMemorySessionProvider:
    """Holds page sessions in process, dropping the least recently used beyond ``max_sessions``."""

    def __init__(self, blog_config: BlogConfig, max_sessions: int = 1000):
        self.blog_config = blog_config
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, PageSession] = OrderedDict()

    def create_session(self) -> PageSession:
        token = secrets.token_urlsafe(32)
        session = PageSession(token, BlogPage(self.blog_config))
        self._sessions[token] = session
        while len(self._sessions) > self.max_sessions:
            expired, _ = self._sessions.popitem(last=False)
            logger.debug(f"Evicted page session {expired[:8]}")

        return session

    def get_session(self, token: str | None) -> PageSession | None:
        if not token or token not in self._sessions:
            return None

        self._sessions.move_to_end(token)
        return self._sessions[token]

    def invalidate_session(self, token: str):
        self._sessions.pop(token, None)

    def __len__(self) -> int:
        return len(self._sessions)


class PageSessionMiddleware(BaseHTTPMiddleware):
    """Attaches ``request.state.page_session`` and issues the session cookie."""

    def __init__(self, app, provider: InMemorySessionProvider, cookie_name: str):
        super().__init__(app)
        self.provider = provider
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next) -> Response:
        session = self.provider.get_session(request.cookies.get(self.cookie_name))
        created = session is None
        if created:
            session = self.provider.create_session()

        request.state.page_session = session
        response = await call_next(request)
        if created:
            response.set_cookie(self.cookie_name, session.token, httponly=True, samesite="lax")

        return response
