import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, runtime_checkable

from google.auth.exceptions import GoogleAuthError
from google.cloud import firestore

from kealthy.blog.records import PLACEHOLDER_IMAGE, BlogRecord, normalize_timestamp, record_from_document
from kealthy.config import ConfigModel

logger = logging.getLogger(__name__)

type BlogDocument = tuple[str, dict[str, Any]]

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class BlogStoreError(Exception):
    """Raised when the blog store cannot be set up."""


@dataclass
class BlogConfig(ConfigModel, model_key="blog"):
    collection: str = "blogs"
    order_by: str = "createdAt"
    grid_initial: int = 3
    grid_increment: int = 3
    page_size: int = 5
    placeholder_image: str = PLACEHOLDER_IMAGE
    randomize_likes: bool = False


@dataclass
class BlogStoreConfig(ConfigModel, model_key="blog_store"):
    backend: str = "memory"
    project: str | None = None
    documents: list[dict[str, Any]] = field(default_factory=list)


@runtime_checkable
class BlogStore(Protocol):
    async def fetch_documents(self) -> list[BlogDocument]:
        """Return ``(id, data)`` pairs ordered newest first."""
        ...


class FirestoreBlogStore:
    """Reads blog documents from a Firestore collection."""

    def __init__(self, config: BlogConfig, client: firestore.AsyncClient):
        self.collection = config.collection
        self.order_by = config.order_by
        self.client = client

    @classmethod
    def from_config(cls, config: BlogConfig, store_config: BlogStoreConfig) -> "FirestoreBlogStore":
        try:
            client = firestore.AsyncClient(project=store_config.project)
        except (GoogleAuthError, OSError) as e:
            raise BlogStoreError(f"Could not create the Firestore client: {e}") from e

        return cls(config, client)

    async def fetch_documents(self) -> list[BlogDocument]:
        query = self.client.collection(self.collection).order_by(
            self.order_by, direction=firestore.Query.DESCENDING
        )
        return [(snapshot.id, snapshot.to_dict() or {}) async for snapshot in query.stream()]


class InMemoryBlogStore:
    """Serves documents held in memory, e.g. from the ``blog_store.documents`` config."""

    def __init__(self, documents: list[dict[str, Any]] | None = None, order_by: str = "createdAt"):
        self.order_by = order_by
        self.documents: list[BlogDocument] = []
        for index, document in enumerate(documents or [], start=1):
            data = dict(document)
            self.documents.append((str(data.pop("id", index)), data))

    async def fetch_documents(self) -> list[BlogDocument]:
        def sort_key(document: BlogDocument) -> datetime:
            return normalize_timestamp(document[1].get(self.order_by)) or _OLDEST

        return sorted(self.documents, key=sort_key, reverse=True)


def create_blog_store(config: BlogConfig, store_config: BlogStoreConfig) -> BlogStore:
    match store_config.backend:
        case "firestore":
            return FirestoreBlogStore.from_config(config, store_config)

        case "memory":
            return InMemoryBlogStore(store_config.documents, order_by=config.order_by)

        case _:
            raise BlogStoreError(f"Unknown blog store backend '{store_config.backend}', expected 'firestore' or 'memory'")


def random_likes() -> int:
    return random.randint(0, 49)


async def load_records(store: BlogStore, likes: Callable[[], int] | None = None) -> list[BlogRecord]:
    """Fetch every blog document and map it to records."""
    documents = await store.fetch_documents()
    records = [
        record_from_document(record_id, data, likes=likes() if likes else 0)
        for record_id, data in documents
    ]
    logger.info(f"Loaded {len(records)} blog posts")
    return records
