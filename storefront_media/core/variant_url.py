"""Resolve logical image sizes into concrete origin CDN URLs.

The origin CDN accepts size requests in query parameters
(``?width=600&height=600``). Older catalog links may also carry the
filename suffix form (``shirt_600x600.jpg``); both are stripped and the
query form is re-applied, so resolving is idempotent.
"""

import re
from typing import Any, Iterable, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from ..models.media import ImageReference, SizeClass
from .config import settings

ImageSource = Union[str, ImageReference, None]

_SIZE_QUERY_KEYS = frozenset({"width", "height", "format", "quality", "crop"})
_SIZE_SUFFIX_RE = re.compile(r"_\d+x\d+(?:@\dx)?(?=\.[A-Za-z0-9]+$|$)")
_PLACEHOLDER_MARKER = "placeholder"


def _extract_url(source: ImageSource) -> Optional[str]:
    if isinstance(source, ImageReference):
        return None if source.missing else source.url.strip()
    if isinstance(source, str) and source.strip():
        return source.strip()
    return None


def is_placeholder(url: Optional[str]) -> bool:
    return _PLACEHOLDER_MARKER in (url or "").lower()


def is_origin_cdn_url(url: Optional[str], hosts: Optional[Iterable[str]] = None) -> bool:
    if not url:
        return False
    allowed = {h.lower() for h in (hosts if hosts is not None else settings.ORIGIN_CDN_HOSTS)}
    hostname = (urlparse(url).hostname or "").lower()
    return hostname in allowed


def _strip_size_suffix(path: str) -> str:
    head, sep, filename = path.rpartition("/")
    while True:
        stripped = _SIZE_SUFFIX_RE.sub("", filename)
        if stripped == filename:
            break
        filename = stripped
    return f"{head}{sep}{filename}"


def resolve(origin: ImageSource, size_class: Any = SizeClass.MEDIUM) -> str:
    """Return the URL serving ``origin`` at ``size_class``.

    Missing references map to the placeholder asset; placeholders and URLs
    from hosts other than the origin CDN are returned unchanged.
    """
    url = _extract_url(origin)
    if url is None:
        return settings.PLACEHOLDER_PATH
    if is_placeholder(url) or not is_origin_cdn_url(url):
        return url

    size = SizeClass.parse(size_class)
    parsed = urlparse(url)
    kept = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key.lower() not in _SIZE_QUERY_KEYS
    ]
    kept.extend([("width", str(size.box)), ("height", str(size.box))])
    return urlunparse(parsed._replace(
        path=_strip_size_suffix(parsed.path),
        query=urlencode(kept),
    ))
