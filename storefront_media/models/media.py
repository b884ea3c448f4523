"""
Value types shared by the resolver, transcoder and delivery service.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

QualityMarker = Union[str, int]

QUALITY_ORIGINAL = "original"
QUALITY_LOSSLESS = "lossless"


class SizeClass(str, Enum):
    """Logical display sizes, declared smallest to largest."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    GRANDE = "grande"

    @property
    def box(self) -> int:
        return SIZE_CLASS_BOXES[self]

    @property
    def rank(self) -> int:
        return list(SizeClass).index(self)

    def __lt__(self, other):
        if not isinstance(other, SizeClass):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, SizeClass):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, SizeClass):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, SizeClass):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: Any) -> "SizeClass":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM


# Square bounding boxes in px
SIZE_CLASS_BOXES: Dict[SizeClass, int] = {
    SizeClass.SMALL: 300,
    SizeClass.MEDIUM: 600,
    SizeClass.LARGE: 1200,
    SizeClass.GRANDE: 2048,
}


@dataclass(frozen=True)
class ImageReference:
    url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    alt_text: Optional[str] = None

    @property
    def missing(self) -> bool:
        return not (self.url and self.url.strip())

    @classmethod
    def from_catalog_node(cls, node: Optional[Dict[str, Any]]) -> "ImageReference":
        if not isinstance(node, dict):
            return cls()
        url = node.get("url") or node.get("src")
        return cls(
            url=url if isinstance(url, str) else None,
            width=node.get("width"),
            height=node.get("height"),
            alt_text=node.get("altText"),
        )


def first_product_image(product: Optional[Dict[str, Any]]) -> ImageReference:
    """Return the first image of a catalog product, or a missing reference."""
    edges = ((product or {}).get("images") or {}).get("edges") or []
    if not edges:
        return ImageReference()
    return ImageReference.from_catalog_node(edges[0].get("node"))


@dataclass
class RawImage:
    data: bytes
    content_type: str

    @property
    def byte_length(self) -> int:
        return len(self.data)


class TranscodePath(str, Enum):
    ORIGINAL = "original"
    LOSSLESS = "lossless"
    LOSSY = "lossy"


@dataclass(frozen=True)
class EncodedResult:
    data: bytes
    mime_type: str
    quality: QualityMarker
    path: TranscodePath
    original_format: str
    budget_unmet: bool = False
    width: Optional[int] = None
    height: Optional[int] = None
    attempts: Tuple[Tuple[QualityMarker, int], ...] = field(default_factory=tuple)

    @property
    def byte_length(self) -> int:
        return len(self.data)

    @property
    def converted_to(self) -> Optional[str]:
        if self.path is TranscodePath.LOSSLESS:
            return "PNG"
        if self.path is TranscodePath.LOSSY:
            return "JPG (PNG was too large)"
        return None
