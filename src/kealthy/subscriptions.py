"""Newsletter sign-up against the external subscribers API."""
import json
import logging
from dataclasses import dataclass

import httpx

from kealthy.config import ConfigModel

logger = logging.getLogger(__name__)

SUBSCRIBERS_PATH = "/api/subscribers"
SUCCESS_MESSAGE = "Subscribed!"
FAILURE_MESSAGE = "Failed to subscribe."
TRANSPORT_FAILURE_MESSAGE = "Something went wrong. Please try again."
MISSING_EMAIL_MESSAGE = "Please enter your email address."


@dataclass
class SubscriptionConfig(ConfigModel, model_key="subscriptions"):
    api_base_url: str = ""


@dataclass
class SubscriptionResult:
    success: bool
    message: str

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SubscriptionResult":
        """Read ``{"success": bool, "message": str}``.

        Bodies of any other shape fall back to the HTTP status for ``success``
        and the raw text for ``message``.
        """
        text = response.text
        try:
            data = json.loads(text)
        except ValueError:
            data = None

        if isinstance(data, dict) and isinstance(data.get("success"), bool):
            success = data["success"]
            message = data.get("message")
            if not isinstance(message, str):
                message = ""
        else:
            success = response.is_success
            message = text

        return cls(success, message or (SUCCESS_MESSAGE if success else FAILURE_MESSAGE))


class SubscriptionClient:
    def __init__(self, config: SubscriptionConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = config.api_base_url.rstrip("/")
        self._client = httpx.AsyncClient(transport=transport)

    @property
    def url(self) -> str:
        return f"{self.base_url}{SUBSCRIBERS_PATH}"

    async def subscribe(self, email: str) -> SubscriptionResult:
        try:
            response = await self._client.post(self.url, json={"email": email})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Subscription request to {self.url} failed: {e}")
            return SubscriptionResult(False, TRANSPORT_FAILURE_MESSAGE)

        logger.info(f"POST {self.url} returned {response.status_code} {response.reason_phrase}")
        logger.debug(f"Raw subscription response: {response.text!r}")
        return SubscriptionResult.from_response(response)

    async def aclose(self):
        await self._client.aclose()


class SubscriptionForm:
    """Footer form state for one page session.

    Only one submission may be in flight; repeats while loading are dropped.
    """

    def __init__(self):
        self.email = ""
        self.message = ""
        self.is_success = False
        self.is_loading = False

    async def submit(self, email: str, client: SubscriptionClient) -> SubscriptionResult | None:
        if self.is_loading:
            logger.info("Ignoring subscription submit while a request is in flight")
            return None

        self.email = email = (email or "").strip()
        self.message = ""
        if not email:
            self.is_success = False
            self.message = MISSING_EMAIL_MESSAGE
            return SubscriptionResult(False, MISSING_EMAIL_MESSAGE)

        self.is_loading = True
        try:
            result = await client.subscribe(email)
        finally:
            self.is_loading = False

        self.is_success = result.success
        self.message = result.message
        if result.success:
            self.email = ""

        return result
