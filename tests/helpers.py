"""
Helper utilities for tests.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import yaml
from bevy import injectable
from starlette.exceptions import HTTPException
from starlette.requests import Request

from kealthy.blog.store import InMemoryBlogStore
from kealthy.router import Router

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def write_config(directory: Path, environment: str = "test", **sections: Any) -> Path:
    """Write ``kealthy.{environment}.yaml`` with the given top level sections."""
    config_file = directory / f"kealthy.{environment}.yaml"
    config_file.write_text(yaml.safe_dump(sections))
    return config_file


def blog_documents(count: int, now: datetime | None = None, spacing_days: float = 1) -> list[dict[str, Any]]:
    """Documents ``post-1`` (newest) to ``post-{count}`` spaced a day apart, as ISO strings."""
    now = now or datetime.now(timezone.utc)
    return [
        {
            "id": f"post-{index}",
            "title": f"Post {index}",
            "content": f"Content for post {index}",
            "tags": ["recipes"] if index % 2 else ["wellness"],
            "createdAt": (now - timedelta(days=(index - 1) * spacing_days, minutes=1)).isoformat(),
        }
        for index in range(1, count + 1)
    ]


class FakeSubscribersAPI:
    """Stands in for the external subscribers endpoint through ``httpx.MockTransport``."""

    def __init__(self, status_code: int = 200, body: Any = None, text: str | None = None, error: Exception | None = None):
        self.status_code = status_code
        self.body = body
        self.text = text
        self.error = error
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error:
            raise self.error

        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)

        return httpx.Response(self.status_code, json=self.body)

    def posted_emails(self) -> list[str]:
        return [json.loads(request.content)["email"] for request in self.requests]


class FlakyStore:
    """Blog store that fails on the first fetch, then serves ``documents``."""

    def __init__(self, documents: list[dict[str, Any]]):
        self.store = InMemoryBlogStore(documents)
        self.calls = 0

    async def fetch_documents(self):
        self.calls += 1
        if self.calls == 1:
            raise ConnectionError("store unavailable")

        return await self.store.fetch_documents()


failing_router = Router()


@failing_router.get("/boom")
@injectable
async def boom(request: Request):
    raise RuntimeError("kitchen on fire")


@failing_router.get("/members")
@injectable
async def members_only(request: Request):
    raise HTTPException(status_code=403, detail="Members only")
