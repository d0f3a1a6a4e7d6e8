"""Tests for the tag service client."""

import httpx
import pytest

from catalogquery.catalog.ports import Tag
from catalogquery.domain.exceptions import TagServiceUnavailable
from catalogquery.infrastructure.tag_client import TagServiceClient, tag_from_api_response


def make_client(handler) -> TagServiceClient:
    """Create a client backed by a mock transport."""
    return TagServiceClient(
        base_url="http://tags.test",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


class TestTagFromApiResponse:
    """Tests for response parsing."""

    def test_underscore_id(self) -> None:
        """Mongo-style _id is accepted."""
        assert tag_from_api_response({"_id": "t-1", "name": "Sale"}) == Tag(id="t-1", name="Sale")

    def test_plain_id(self) -> None:
        """Plain id is accepted."""
        assert tag_from_api_response({"id": "t-2"}) == Tag(id="t-2")


class TestTagServiceClient:
    """Tests for TagServiceClient."""

    @pytest.mark.asyncio
    async def test_find_tags(self) -> None:
        """Tags are listed for a content type."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, json=[{"_id": "t-sale", "name": "Sale"}, {"_id": "t-new", "name": "New"}]
            )

        client = make_client(handler)
        tags = await client.find_tags("products:product")
        await client.close()

        assert tags == [Tag(id="t-sale", name="Sale"), Tag(id="t-new", name="New")]
        assert requests[0].url.path == "/tags"
        assert requests[0].url.params["type"] == "products:product"

    @pytest.mark.asyncio
    async def test_find_tags_wrapped_items(self) -> None:
        """An {"items": [...]} envelope is unwrapped."""
        client = make_client(lambda request: httpx.Response(200, json={"items": [{"id": "t-1"}]}))

        assert await client.find_tags("products:product") == [Tag(id="t-1")]

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        """Non-200 responses raise instead of returning no tags."""
        client = make_client(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(TagServiceUnavailable) as exc_info:
            await client.find_tags("products:product")

        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Timeouts raise TagServiceUnavailable."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)

        with pytest.raises(TagServiceUnavailable, match="timed out"):
            await client.find_tags("products:product")

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        """Transport errors raise TagServiceUnavailable."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)

        with pytest.raises(TagServiceUnavailable, match="request failed"):
            await client.find_tags("products:product")

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        """A gateway page instead of JSON raises TagServiceUnavailable."""
        client = make_client(lambda request: httpx.Response(200, text="<html>gateway</html>"))

        with pytest.raises(TagServiceUnavailable, match="malformed"):
            await client.find_tags("products:product")

    @pytest.mark.asyncio
    async def test_tag_without_id(self) -> None:
        """A tag item with neither _id nor id raises TagServiceUnavailable."""
        client = make_client(lambda request: httpx.Response(200, json=[{"name": "x"}]))

        with pytest.raises(TagServiceUnavailable, match="malformed"):
            await client.find_tags("products:product")

    @pytest.mark.asyncio
    async def test_non_list_items(self) -> None:
        """An envelope whose items are not objects raises TagServiceUnavailable."""
        client = make_client(lambda request: httpx.Response(200, json={"items": "t-1"}))

        with pytest.raises(TagServiceUnavailable, match="malformed"):
            await client.find_tags("products:product")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        """Closing twice is safe."""
        client = make_client(lambda request: httpx.Response(200, json=[]))
        await client.find_tags("products:product")

        await client.close()
        await client.close()

        assert client._client is None
