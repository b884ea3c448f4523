"""
Image delivery: resolved URLs by default, budget-constrained inline
payloads on request.

The inline path fetches the origin image and transcodes it on a worker
thread. One wall-clock timeout covers both steps.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Optional, Union

from ..core.config import settings
from ..core.errors import DeliveryTimeoutError, InputError
from ..core.origin_fetcher import OriginFetcher
from ..core.transcoder import AdaptiveTranscoder, TranscodeConfig
from ..core.variant_url import ImageSource, is_origin_cdn_url, is_placeholder, resolve
from ..models.media import EncodedResult, ImageReference, RawImage, SizeClass

logger = logging.getLogger(__name__)


def to_data_uri(result: EncodedResult) -> str:
    encoded = base64.b64encode(result.data).decode("ascii")
    return f"data:{result.mime_type};base64,{encoded}"


class PipelineCoordinator:
    def __init__(
        self,
        fetcher: Optional[OriginFetcher] = None,
        transcoder: Optional[AdaptiveTranscoder] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.fetcher = fetcher or OriginFetcher()
        self.transcoder = transcoder or AdaptiveTranscoder(TranscodeConfig.from_settings(settings))
        self.timeout_seconds = settings.DELIVERY_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds

    async def deliver(
        self,
        origin: ImageSource,
        size_class: Any = SizeClass.MEDIUM,
        budget: Optional[int] = None,
        inline: bool = False,
    ) -> Union[str, EncodedResult]:
        """Resolve ``origin``; transcode only when an inline payload is wanted.

        Passing ``budget`` implies ``inline``. Placeholders and images from
        other hosts always come back as their resolved URL.
        """
        _check_budget(budget)
        url = resolve(origin, size_class)
        if not (inline or budget is not None):
            return url
        if not self._transcodable(origin, url):
            logger.info("[delivery] pass-through %s", url)
            return url
        return await self._run_with_timeout(self._fetch_and_transcode(url, budget), url)

    async def deliver_inline(
        self,
        origin: ImageSource,
        size_class: Any = SizeClass.GRANDE,
        budget: Optional[int] = None,
    ) -> EncodedResult:
        _check_budget(budget)
        if _is_missing(origin):
            raise InputError("Image URL is required")
        url = resolve(origin, size_class)
        if not self._transcodable(origin, url):
            raise InputError("Only origin CDN images are supported for conversion")
        return await self._run_with_timeout(self._fetch_and_transcode(url, budget), url)

    async def transcode_bytes(
        self,
        data: bytes,
        content_type: str = "",
        budget: Optional[int] = None,
    ) -> EncodedResult:
        _check_budget(budget)
        raw = RawImage(data=data, content_type=content_type)
        return await self._run_with_timeout(self._transcode(raw, budget), "<bytes>")

    def _transcodable(self, origin: ImageSource, url: str) -> bool:
        return not _is_missing(origin) and not is_placeholder(url) and is_origin_cdn_url(url)

    async def _fetch_and_transcode(self, url: str, budget: Optional[int]) -> EncodedResult:
        raw = await self.fetcher.fetch(url)
        return await self._transcode(raw, budget)

    async def _transcode(self, raw: RawImage, budget: Optional[int]) -> EncodedResult:
        config = self.transcoder.config.with_budget(budget)
        return await asyncio.to_thread(self.transcoder.transcode, raw, config)

    async def _run_with_timeout(self, coro, label: str) -> EncodedResult:
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.error("[delivery] timed out after %ss for %s", self.timeout_seconds, label)
            raise DeliveryTimeoutError(
                "Image delivery timed out",
                f"exceeded {self.timeout_seconds}s",
            ) from exc


def _check_budget(budget: Optional[int]) -> None:
    if budget is not None and budget <= 0:
        raise InputError("budget must be positive", f"got {budget}")


def _is_missing(origin: ImageSource) -> bool:
    if isinstance(origin, ImageReference):
        return origin.missing
    return not (isinstance(origin, str) and origin.strip())


_coordinator: Optional[PipelineCoordinator] = None


def get_coordinator() -> PipelineCoordinator:
    """FastAPI dependency; tests override it through ``app.dependency_overrides``."""
    global _coordinator
    if _coordinator is None:
        _coordinator = PipelineCoordinator()
    return _coordinator
