"""Tag service HTTP client.

Lists the tags defined for a content type. Errors and timeouts raise
``TagServiceUnavailable`` instead of degrading to an empty tag list.
"""

from typing import Any

import httpx
import structlog

from catalogquery.catalog.ports import Tag
from catalogquery.domain.exceptions import TagServiceUnavailable
from catalogquery.infrastructure.config import settings

logger = structlog.get_logger()


def tag_from_api_response(data: dict[str, Any]) -> Tag:
    """Create a Tag from tag service response data."""
    return Tag(id=data.get("_id") or data["id"], name=data.get("name"))


class TagServiceClient:
    """HTTP client for the tag service.

    Example usage:
        client = TagServiceClient()
        tags = await client.find_tags("products:product")
        await client.close()
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize tag service client.

        Args:
            base_url: Tag service URL (default from settings).
            timeout: Request timeout in seconds (default from settings).
            transport: Optional httpx transport, mainly for tests.
        """
        self.base_url = base_url or settings.tag_service_url
        self.timeout = timeout if timeout is not None else settings.tag_service_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def find_tags(self, content_type: str) -> list[Tag]:
        """List tags defined for a content type.

        Args:
            content_type: Content type, e.g. "products:product".

        Returns:
            Known tags.

        Raises:
            TagServiceUnavailable: On timeout, transport error, non-200 or
                unreadable response.
        """
        try:
            client = await self._get_client()
            response = await client.get("/tags", params={"type": content_type})
        except httpx.TimeoutException as e:
            logger.error("Tag service timed out", content_type=content_type)
            raise TagServiceUnavailable(f"Tag service timed out: {e}") from e
        except httpx.RequestError as e:
            logger.error("Tag service request failed", content_type=content_type, error=str(e))
            raise TagServiceUnavailable(f"Tag service request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "Tag service returned error",
                content_type=content_type,
                status_code=response.status_code,
            )
            raise TagServiceUnavailable(
                f"Failed to list tags: {response.text}",
                response.status_code,
            )

        try:
            data = response.json()
            items = data.get("items", []) if isinstance(data, dict) else data
            return [tag_from_api_response(item) for item in items]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(
                "Tag service returned malformed tags",
                content_type=content_type,
                error=str(e),
            )
            raise TagServiceUnavailable(f"Tag service returned malformed tags: {e}") from e
