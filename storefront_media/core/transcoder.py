"""
Budget-constrained transcoding for inline image attachments.

Lossless PNG first, then JPEG at decreasing quality until the payload fits
the byte budget or the quality floor is reached. The control flow is an
explicit state machine::

    TryLossless -> TryLossy(q) -> ... -> Done(result) | Failed(error)

Every transition out of ``TryLossy`` lowers the quality, so the number of
encodes is bounded by ``TranscodeConfig.max_encodes``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Tuple, Union

from ..models.media import (
    QUALITY_LOSSLESS,
    QUALITY_ORIGINAL,
    EncodedResult,
    QualityMarker,
    RawImage,
    TranscodePath,
)
from .codec import (
    LOSSLESS_FORMAT,
    LOSSY_FORMAT,
    MIME_TYPES,
    ImageCodec,
    PillowCodec,
    has_png_signature,
)
from .errors import CodecError, PipelineError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscodeConfig:
    max_dimension: int = 1200
    byte_budget: int = 2 * 1024 * 1024
    start_quality: int = 85
    quality_step: int = 10
    quality_floor: int = 30
    png_compression_level: int = 6

    def __post_init__(self):
        if self.max_dimension <= 0:
            raise ValueError("max_dimension must be positive")
        if self.byte_budget <= 0:
            raise ValueError("byte_budget must be positive")
        if self.quality_step <= 0:
            raise ValueError("quality_step must be positive")
        if not 1 <= self.quality_floor <= self.start_quality <= 95:
            raise ValueError("expected 1 <= quality_floor <= start_quality <= 95")
        if not 0 <= self.png_compression_level <= 9:
            raise ValueError("png_compression_level must be within 0..9")

    @property
    def max_encodes(self) -> int:
        """One PNG encode plus every rung of the JPEG ladder, floor included."""
        return math.ceil((self.start_quality - self.quality_floor) / self.quality_step) + 2

    def quality_ladder(self) -> List[int]:
        ladder = list(range(self.start_quality, self.quality_floor - 1, -self.quality_step))
        if ladder[-1] != self.quality_floor:
            ladder.append(self.quality_floor)
        return ladder

    def with_budget(self, byte_budget: Optional[int]) -> "TranscodeConfig":
        if byte_budget is None or byte_budget == self.byte_budget:
            return self
        return replace(self, byte_budget=byte_budget)

    @classmethod
    def from_settings(cls, settings) -> "TranscodeConfig":
        return cls(
            max_dimension=settings.MAX_DIMENSION,
            byte_budget=settings.BYTE_BUDGET,
            start_quality=settings.START_QUALITY,
            quality_step=settings.QUALITY_STEP,
            quality_floor=settings.QUALITY_FLOOR,
            png_compression_level=settings.PNG_COMPRESSION_LEVEL,
        )


@dataclass(frozen=True)
class TryLossless:
    pass


@dataclass(frozen=True)
class TryLossy:
    quality: int


@dataclass(frozen=True)
class Done:
    result: EncodedResult


@dataclass(frozen=True)
class Failed:
    error: PipelineError


State = Union[TryLossless, TryLossy, Done, Failed]


def normalize_content_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


class AdaptiveTranscoder:
    """Produce an encoding of an image that fits ``config.byte_budget``.

    Stateless between calls; one instance can serve concurrent requests.
    """

    def __init__(self, config: Optional[TranscodeConfig] = None, codec: Optional[ImageCodec] = None):
        self.config = config or TranscodeConfig()
        self.codec = codec or PillowCodec()

    def transcode(self, raw: RawImage, config: Optional[TranscodeConfig] = None) -> EncodedResult:
        config = config or self.config
        declared = normalize_content_type(raw.content_type)

        if (
            declared == MIME_TYPES[LOSSLESS_FORMAT]
            and raw.byte_length <= config.byte_budget
            and has_png_signature(raw.data)
        ):
            logger.info(
                "[transcoder] passthrough input=%d bytes type=%s", raw.byte_length, declared
            )
            return EncodedResult(
                data=raw.data,
                mime_type=MIME_TYPES[LOSSLESS_FORMAT],
                quality=QUALITY_ORIGINAL,
                path=TranscodePath.ORIGINAL,
                original_format=declared,
            )

        image = self.codec.decode(raw.data)
        resized = None
        try:
            resized = self.codec.resize_within(image, config.max_dimension)
            run = _Run(self.codec, resized, config, declared)
            state: State = TryLossless()
            while not isinstance(state, (Done, Failed)):
                if run.encodes >= config.max_encodes:
                    state = Failed(CodecError("Quality search exceeded its iteration bound"))
                    break
                state = run.step(state)
        finally:
            if resized is not None and resized is not image:
                self.codec.release(resized)
            self.codec.release(image)

        if isinstance(state, Failed):
            logger.error(
                "[transcoder] failed input=%d bytes type=%s attempts=%s: %s",
                raw.byte_length, declared, run.attempts, state.error.message,
            )
            raise state.error

        result = state.result
        log = logger.warning if result.budget_unmet else logger.info
        log(
            "[transcoder] input=%d bytes type=%s path=%s quality=%s output=%d bytes budget=%d%s",
            raw.byte_length, declared, result.path.value, result.quality,
            result.byte_length, config.byte_budget,
            " (budget unmet)" if result.budget_unmet else "",
        )
        return result


class _Run:
    """Per-call state for one pass through the machine."""

    def __init__(self, codec: ImageCodec, image: Any, config: TranscodeConfig, original_format: str):
        self.codec = codec
        self.image = image
        self.config = config
        self.original_format = original_format
        self.attempts: List[Tuple[QualityMarker, int]] = []

    @property
    def encodes(self) -> int:
        return len(self.attempts)

    def step(self, state: State) -> State:
        try:
            if isinstance(state, TryLossless):
                return self._try_lossless()
            return self._try_lossy(state.quality)
        except PipelineError as exc:
            return Failed(exc)

    def _encode(self, fmt: str, marker: QualityMarker, **kwargs) -> bytes:
        data = self.codec.encode(self.image, fmt, **kwargs)
        self.attempts.append((marker, len(data)))
        logger.debug("[transcoder] %s quality=%s -> %d bytes", fmt, marker, len(data))
        return data

    def _try_lossless(self) -> State:
        data = self._encode(
            LOSSLESS_FORMAT, QUALITY_LOSSLESS,
            compression_level=self.config.png_compression_level,
        )
        if len(data) <= self.config.byte_budget:
            return Done(self._result(data, LOSSLESS_FORMAT, QUALITY_LOSSLESS, TranscodePath.LOSSLESS))
        return TryLossy(self.config.start_quality)

    def _try_lossy(self, quality: int) -> State:
        data = self._encode(LOSSY_FORMAT, quality, quality=quality)
        if len(data) <= self.config.byte_budget:
            return Done(self._result(data, LOSSY_FORMAT, quality, TranscodePath.LOSSY))
        next_quality = quality - self.config.quality_step
        if next_quality >= self.config.quality_floor:
            return TryLossy(next_quality)
        if quality > self.config.quality_floor:
            return TryLossy(self.config.quality_floor)
        return Done(self._result(data, LOSSY_FORMAT, quality, TranscodePath.LOSSY, budget_unmet=True))

    def _result(self, data: bytes, fmt: str, quality: QualityMarker, path: TranscodePath,
                budget_unmet: bool = False) -> EncodedResult:
        width, height = self.codec.dimensions(self.image)
        return EncodedResult(
            data=data,
            mime_type=MIME_TYPES[fmt],
            quality=quality,
            path=path,
            original_format=self.original_format,
            budget_unmet=budget_unmet,
            width=width,
            height=height,
            attempts=tuple(self.attempts),
        )
