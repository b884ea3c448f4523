"""Download origin image bytes over HTTP."""

import logging
from typing import Optional

import httpx

from ..models.media import RawImage
from .errors import FetchError

logger = logging.getLogger(__name__)


class OriginFetcher:
    """Single-shot GET of an origin image.

    No retries and no timeout of its own: the caller owns both.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    async def fetch(self, url: str) -> RawImage:
        if self._client is not None:
            return await self._fetch(self._client, url)
        async with httpx.AsyncClient(timeout=None, follow_redirects=True) as client:
            return await self._fetch(client, url)

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> RawImage:
        try:
            resp = await client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("[origin_fetch] %s returned HTTP %s", url, status)
            raise FetchError(
                "Failed to fetch image",
                f"{status} {exc.response.reason_phrase}".strip(),
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("[origin_fetch] %s failed: %s", url, exc)
            raise FetchError("Failed to fetch image", str(exc) or type(exc).__name__) from exc

        content = resp.content
        if not content:
            raise FetchError("Failed to fetch image", "empty response body")
        content_type = resp.headers.get("content-type", "")
        logger.info("[origin_fetch] %s -> %d bytes (%s)", url, len(content), content_type or "unknown")
        return RawImage(data=content, content_type=content_type)
