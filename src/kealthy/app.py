import importlib
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generator

import httpx
import starlette.responses
from bevy.registries import Registry
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles
from starlette.templating import Jinja2Templates

from kealthy.blog.records import format_long_date, format_short_date
from kealthy.blog.store import BlogConfig, BlogStore, BlogStoreConfig, BlogStoreError, create_blog_store
from kealthy.config import Config, ConfigModel
from kealthy.exception_middleware import ExceptionMiddleware, http_exception_handler
from kealthy.injectors import handle_config_model_types
from kealthy.navigation import SOCIAL_LINKS, footer_links
from kealthy.router import Router
from kealthy.sessions import InMemorySessionProvider, PageSessionMiddleware, SessionConfig
from kealthy.subscriptions import SubscriptionClient, SubscriptionConfig

logger = logging.getLogger(__name__)

PACKAGE_TEMPLATES = Path(__file__).parent / "templates"
PACKAGE_STATIC = Path(__file__).parent / "static"
DEFAULT_ROUTER = "kealthy.routes:router"


@dataclass
class TemplatesConfig(ConfigModel, model_key="templates"):
    """Configuration for templates."""
    directory: str | None = None


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded."""
    def __init__(self, message: str, config_filename: str, working_directory: Path):
        super().__init__(message)
        self.config_filename = config_filename
        self.working_directory = working_directory


class Kealthy:
    def __init__(
        self,
        working_directory: str | Path | None = None,
        environment: str | None = None,
        *,
        router: str = DEFAULT_ROUTER,
        blog_store: BlogStore | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Build the site application from ``kealthy.{environment}.yaml``.

        Args:
            working_directory: Directory holding the config files, defaults to the current working directory.
            environment: Environment name (e.g. 'dev', 'prod'). Falls back to the KEALTHY_ENVIRONMENT env var,
                then 'prod'.
            router: ``module:attribute`` of the router providing the page handlers.
            blog_store: Store to use instead of the one described by the ``blog_store`` config section.
            http_transport: Transport for the subscriptions API client.

        Raises:
            ConfigurationError: When the config file cannot be found or loaded
        """
        self.registry = Registry()
        handle_config_model_types.register_hook(self.registry)
        self.container = self.registry.create_container()

        self.environment = self._get_environment(environment)
        self._load_configuration(working_directory)

        self.blog_config = self.container.get(BlogConfig)
        if blog_store is None:
            try:
                blog_store = create_blog_store(self.blog_config, self.container.get(BlogStoreConfig))
            except BlogStoreError as e:
                raise ConfigurationError(
                    f"Failed to set up the blog store: {e}", self.config_path.name, self.config_path.parent
                ) from e

        self.blog_store = blog_store
        self.subscriptions = SubscriptionClient(self.container.get(SubscriptionConfig), transport=http_transport)
        if not self.subscriptions.base_url:
            logger.warning("No subscriptions.api_base_url configured, newsletter sign-ups will fail")

        session_config = self.container.get(SessionConfig)
        self.sessions = InMemorySessionProvider(self.blog_config, max_sessions=session_config.max_sessions)

        self.container.add(BlogStore, self.blog_store)
        self.container.add(SubscriptionClient, self.subscriptions)
        self.container.add(InMemorySessionProvider, self.sessions)

        self.templates = self._create_templates(self.container.get(TemplatesConfig))
        self.app = Starlette(
            routes=[
                *self._build_routes(self._import_router(*router.split(":", 1))),
                Mount("/static", app=StaticFiles(directory=PACKAGE_STATIC), name="static"),
            ],
            middleware=[
                Middleware(PageSessionMiddleware, provider=self.sessions, cookie_name=session_config.cookie_name),
                Middleware(ExceptionMiddleware, kealthy=self),
            ],
            exception_handlers={HTTPException: http_exception_handler(self)},
            lifespan=self._lifespan,
        )
        self.app.state.kealthy = self

    async def __call__(self, scope, receive, send):
        await self.app(scope, receive, send)

    @asynccontextmanager
    async def _lifespan(self, app: Starlette):
        logger.info(f"Kealthy site starting in '{self.environment}'")
        try:
            yield

        finally:
            await self.subscriptions.aclose()

    def _load_configuration(self, working_directory: str | Path | None) -> None:
        self.config_path = config_path = self.get_config_path(working_directory, self.environment)
        try:
            self.config = Config.load_config(config_path.name, config_path.parent)
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load configuration from '{config_path}': {e}",
                config_path.name,
                config_path.parent,
            ) from e

        logger.debug(f"Loaded configuration from {config_path}")
        self.container.add(self.config)

    def _create_templates(self, config: TemplatesConfig) -> Jinja2Templates:
        templates = Jinja2Templates(directory=config.directory or str(PACKAGE_TEMPLATES))
        templates.env.filters["long_date"] = format_long_date
        templates.env.filters["short_date"] = format_short_date
        return templates

    def _import_router(self, module_name: str, router_name: str) -> Router:
        module = importlib.import_module(module_name)
        return getattr(module, router_name)

    def _build_routes(self, router: Router) -> Generator[Route, None, None]:
        for route in router.routes:
            yield Route(route.path, self._wrap_endpoint(route.endpoint), methods=route.methods, name=route.name)

    def _wrap_endpoint(self, endpoint):
        async def wrapped_endpoint(request: Request):
            result = await self.container.call(endpoint, request=request, **request.path_params)
            match result:
                case starlette.responses.Response():
                    return result

                case (str() as template, dict() as context):
                    return self.render(request, template, context)

                case _:
                    raise ValueError(f"Unsupported return type: {type(result)}")

        return wrapped_endpoint

    def page_context(self, request: Request) -> dict[str, Any]:
        """Values every page template needs for the shared layout and footer."""
        session = getattr(request.state, "page_session", None)
        return {
            "current_path": request.url.path,
            "footer_groups": footer_links(request.url.path),
            "social_links": SOCIAL_LINKS,
            "subscription": session.subscription if session else None,
            "placeholder_image": self.blog_config.placeholder_image,
        }

    def render(self, request: Request, template: str, context: dict[str, Any], status_code: int = 200):
        return self.templates.TemplateResponse(
            request,
            template,
            self.page_context(request) | context,
            status_code=status_code,
        )

    def render_error(
        self, request: Request, error_code: int, error_message: str | None, details: str | None
    ) -> starlette.responses.Response:
        return self.render(
            request,
            "error.html",
            {"error_code": error_code, "error_message": error_message or "Error", "details": details},
            status_code=error_code,
        )

    @staticmethod
    def get_config_path(working_directory: str | Path | None, environment: str | None) -> Path:
        match working_directory:
            case str():
                working_directory = Path(working_directory)
            case Path():
                pass
            case None:
                working_directory = Path.cwd()
            case _:
                raise ValueError(f"Invalid working directory: {working_directory}")

        environment = Kealthy._get_environment(environment)
        config_filename = f"kealthy.{environment}.yaml"
        if not working_directory.exists():
            raise ConfigurationError(
                f"Configuration file '{config_filename}' not found, the working directory {working_directory} does not "
                f"exist or is not a valid path. Confirm that the working directory is set correctly and that it exists.",
                config_filename,
                working_directory,
            )

        config_path = working_directory / config_filename
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file '{config_path}' not found, confirm that the environment '{environment}' is set "
                f"correctly and that the file exists.",
                config_filename,
                working_directory,
            )

        return config_path

    @staticmethod
    def _get_environment(environment: str | None) -> str:
        if environment:
            return environment

        return os.environ.get("KEALTHY_ENVIRONMENT", "prod")
