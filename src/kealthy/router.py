from typing import Any, Callable, Literal

from starlette.routing import Route

type HTTPMethod = Literal["GET", "POST"]


class Router:
    """Collects page handlers; the application wraps each one for injection and rendering."""

    def __init__(self):
        self.routes: list[Route] = []

    def route[**P, R](
        self, path: str, methods: set[HTTPMethod] | None = None, *, name: str | None = None
    ) -> Callable[[Callable[P, R]], Callable[P, R]]:
        methods = methods or {"GET"}
        if not isinstance(methods, set) or not all(isinstance(method, str) for method in methods):
            raise ValueError("Methods must be a set of strings")

        def decorator(func: Callable[P, R]) -> Callable[P, R]:
            self.routes.append(Route(path, func, methods=methods, name=name or getattr(func, "__name__", path)))
            return func

        return decorator

    def get[**P, R](self, path: str, *, name: str | None = None) -> Callable[[Callable[P, R]], Callable[P, R]]:
        return self.route(path, {"GET"}, name=name)

    def post[**P, R](self, path: str, *, name: str | None = None) -> Callable[[Callable[P, R]], Callable[P, R]]:
        return self.route(path, {"POST"}, name=name)
