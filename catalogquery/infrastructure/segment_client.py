"""Segment service HTTP client.

The segment service evaluates dynamic segment rules. This client asks it
for the members of a segment and for per-segment counts. Errors and
timeouts raise ``SegmentResolutionFailed``.
"""

from typing import Any

import httpx
import structlog

from catalogquery.catalog.ports import PRODUCT_CONTENT_TYPE, SegmentCountContext
from catalogquery.domain.exceptions import SegmentResolutionFailed
from catalogquery.infrastructure.config import settings

logger = structlog.get_logger()


class SegmentServiceClient:
    """HTTP client for the segment service.

    Example usage:
        client = SegmentServiceClient()
        ids = await client.resolve_ids("seg-vip", None)
        counts = await client.count_by_segment(context)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        content_type: str = PRODUCT_CONTENT_TYPE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize segment service client.

        Args:
            base_url: Segment service URL (default from settings).
            timeout: Request timeout in seconds (default from settings).
            content_type: Content type whose members are resolved.
            transport: Optional httpx transport, mainly for tests.
        """
        self.base_url = base_url or settings.segment_service_url
        self.timeout = timeout if timeout is not None else settings.segment_timeout
        self.content_type = content_type
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

    async def _post(self, path: str, payload: dict[str, Any], segment: str | None) -> Any:
        try:
            client = await self._get_client()
            response = await client.post(path, json=payload)
        except httpx.TimeoutException as e:
            logger.error("Segment service timed out", path=path, segment=segment)
            raise SegmentResolutionFailed(
                f"Segment service timed out: {e}",
                segment=segment,
                timed_out=True,
            ) from e
        except httpx.RequestError as e:
            logger.error("Segment service request failed", path=path, error=str(e))
            raise SegmentResolutionFailed(
                f"Segment service request failed: {e}",
                segment=segment,
            ) from e

        if response.status_code != 200:
            logger.error(
                "Segment service returned error",
                path=path,
                segment=segment,
                status_code=response.status_code,
            )
            raise SegmentResolutionFailed(
                f"Segment service error {response.status_code}: {response.text}",
                segment=segment,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error("Segment service returned invalid JSON", path=path, segment=segment)
            raise SegmentResolutionFailed(
                f"Segment service returned invalid JSON: {e}",
                segment=segment,
            ) from e

    async def resolve_ids(
        self,
        segment: str | None,
        segment_data: str | None,
    ) -> list[str]:
        """Get IDs of entities belonging to a segment.

        Args:
            segment: Saved segment ID.
            segment_data: Inline segment definition.

        Returns:
            Member IDs.

        Raises:
            SegmentResolutionFailed: On timeout, transport error or bad response.
        """
        data = await self._post(
            "/segments/resolve",
            {
                "contentType": self.content_type,
                "segment": segment,
                "segmentData": segment_data,
            },
            segment,
        )
        if not isinstance(data, dict) or not isinstance(data.get("ids"), list):
            raise SegmentResolutionFailed(
                "Segment service returned a malformed member list",
                segment=segment,
            )
        return [str(member_id) for member_id in data["ids"]]

    async def count_by_segment(self, context: SegmentCountContext) -> dict[str, int]:
        """Count entities per segment definition.

        Args:
            context: Content type, base filter and params for the count.

        Returns:
            Mapping of segment ID to count.

        Raises:
            SegmentResolutionFailed: On timeout, transport error or bad response.
        """
        data = await self._post(
            "/segments/counts",
            {
                "contentType": context.content_type,
                "commonQuerySelector": context.common,
                "params": context.params.model_dump(by_alias=True, exclude_none=True),
            },
            context.params.segment,
        )
        if not isinstance(data, dict) or not isinstance(data.get("counts"), dict):
            raise SegmentResolutionFailed(
                "Segment service returned malformed counts",
                segment=context.params.segment,
            )
        try:
            return {str(key): int(value) for key, value in data["counts"].items()}
        except (ValueError, TypeError) as e:
            raise SegmentResolutionFailed(
                f"Segment service returned malformed counts: {e}",
                segment=context.params.segment,
            ) from e
