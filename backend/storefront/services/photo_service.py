"""
Product Photo URL Resolver

Product images live in three storage generations, and a product's first
ProductImage row may come from any of them:

1. url         - legacy absolute URL entered by hand or imported
2. image_id    - content id of a CDN upload (+ Image.mime for the extension)
3. tg_file_id  - file delivered through the chat bot; needs a signed,
                 expiring fetch, so it is served through a same-origin proxy

resolve_photo_url applies that precedence, first match wins, and returns
None when nothing usable is stored. It never raises for a bad descriptor and
is deterministic, so the proxy layer can put caching headers on the result.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlsplit

from flask import current_app

BOT_FILE_PROXY_PATH = "/products/{product_id}/image"

# Old upload worker served blobs at .../images/<sha256>/<name>
_LEGACY_WORKER_URL_RE = re.compile(r"/images/([0-9a-f]{64})/", re.IGNORECASE)

UrlComposer = Callable[[str, str], Optional[str]]


@dataclass(frozen=True)
class PhotoDescriptor:
    """Raw image fields carried on a search row."""
    product_id: Any = None
    url: Optional[str] = None
    image_id: Optional[str] = None
    mime: Optional[str] = None
    tg_file_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PhotoDescriptor":
        return cls(
            product_id=row.get("id"),
            url=row.get("img_url"),
            image_id=row.get("img_image_id"),
            mime=row.get("img_mime"),
            tg_file_id=row.get("img_tg_file_id"),
        )


def ext_from_mime(mime: str | None) -> str:
    """Map a MIME type onto the CDN object extension; jpg when unknown."""
    m = (mime or "").lower() if isinstance(mime, str) else ""
    if "png" in m:
        return "png"
    if "webp" in m:
        return "webp"
    return "jpg"


def public_image_url(content_id: str, ext: str) -> str | None:
    """
    Compose the public CDN URL for a stored image.

    Returns None (and warns) when CDN_PUBLIC_BASE is not configured.
    """
    base = (current_app.config.get("CDN_PUBLIC_BASE") or "").rstrip("/")
    if not base:
        current_app.logger.warning("CDN_PUBLIC_BASE is not configured; image %s has no public URL", content_id)
        return None
    return f"{base}/{content_id}.{ext}"


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _rewrite_legacy_worker_url(url: str, compose_url: UrlComposer) -> str | None:
    m = _LEGACY_WORKER_URL_RE.search(url)
    if not m:
        return None
    return compose_url(m.group(1).lower(), "jpg")


def resolve_photo_url(
    descriptor: PhotoDescriptor | None,
    compose_url: UrlComposer | None = None,
    *,
    rewrite_legacy_worker_urls: bool | None = None,
) -> str | None:
    """
    Resolve the public photo URL for one product row.

    Args:
        descriptor: Raw image fields (None when the product has no image row)
        compose_url: (content_id, ext) -> URL; defaults to public_image_url
        rewrite_legacy_worker_urls: Map old worker URLs onto the CDN;
            defaults to CDN_REWRITE_LEGACY_WORKER_URLS

    Returns:
        Absolute URL, same-origin proxy path, or None for "no photo"
    """
    if not isinstance(descriptor, PhotoDescriptor):
        return None
    if compose_url is None:
        compose_url = public_image_url

    if _is_http_url(descriptor.url):
        url = descriptor.url.strip()
        if rewrite_legacy_worker_urls is None:
            rewrite_legacy_worker_urls = bool(current_app.config.get("CDN_REWRITE_LEGACY_WORKER_URLS"))
        if rewrite_legacy_worker_urls:
            return _rewrite_legacy_worker_url(url, compose_url) or url
        return url

    if _has_text(descriptor.image_id):
        return compose_url(descriptor.image_id.strip(), ext_from_mime(descriptor.mime))

    if _has_text(descriptor.tg_file_id) and descriptor.product_id is not None:
        return BOT_FILE_PROXY_PATH.format(product_id=descriptor.product_id)

    return None
