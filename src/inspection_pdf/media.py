"""
Image download and decode, done once per document before layout starts.

Layout never touches the network: it reads from the `ImageStore` that
`prefetch_images` returns, where a failed url is recorded as a miss.
"""
from __future__ import annotations

import hashlib
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from io import BytesIO
from types import MappingProxyType
from typing import Callable, Iterable, Mapping
from urllib.parse import urlparse

import requests
from PIL import Image, UnidentifiedImageError

from .errors import MediaError

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = (10, 30)  # connect, read
USER_AGENT = "inspection-pdf-media/1.0"
MAX_WORKERS = 8

Fetcher = Callable[[str], bytes]


@dataclass(frozen=True)
class DecodedImage:
    url: str
    data: bytes
    width: int
    height: int


def sanitize_filename(url: str) -> str:
    parsed = urlparse(url)
    base = os.path.basename(parsed.path) or "media"
    return re.sub(r"[^A-Za-z0-9._-]+", "_", base) or "media"


def cache_path(cache_dir: str, url: str) -> str:
    # basename alone collides across hosts ("photo.jpg"), so prefix a url hash
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
    return os.path.join(cache_dir, f"{digest}_{sanitize_filename(url)}")


def http_fetch(url: str, session: requests.Session | None = None) -> bytes:
    """GET the url and return the body. Any transport or HTTP error becomes MediaError."""
    getter = session.get if session is not None else requests.get
    try:
        with getter(url, stream=True, timeout=HTTP_TIMEOUT, headers={"User-Agent": USER_AGENT}) as r:
            r.raise_for_status()
            buf = BytesIO()
            for chunk in r.iter_content(8192):
                if chunk:
                    buf.write(chunk)
            return buf.getvalue()
    except requests.RequestException as e:
        raise MediaError(url, str(e)) from e


def cached_fetcher(fetcher: Fetcher, cache_dir: str) -> Fetcher:
    """Wrap a fetcher so bodies are read from / written to cache_dir."""
    os.makedirs(cache_dir, exist_ok=True)

    def fetch(url: str) -> bytes:
        local = cache_path(cache_dir, url)
        if os.path.exists(local):
            with open(local, "rb") as f:
                return f.read()
        data = fetcher(url)
        tmp = local + ".part"
        try:
            with open(tmp, "wb") as f:
                f.write(data)
            os.replace(tmp, local)
        except OSError as e:
            logger.warning("could not cache %s: %s", url, e)
        return data

    return fetch


def decode_image(url: str, data: bytes) -> DecodedImage:
    if not data:
        raise MediaError(url, "empty response body")
    try:
        with Image.open(BytesIO(data)) as im:
            im.load()
            w, h = im.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise MediaError(url, f"cannot decode image: {e}") from e
    if w <= 0 or h <= 0:
        raise MediaError(url, "image has no pixels")
    return DecodedImage(url, data, w, h)


class ImageStore:
    """Read-only url -> DecodedImage map. A url that failed maps to None."""

    def __init__(self, images: Mapping[str, DecodedImage | None] | None = None):
        self._images = MappingProxyType(dict(images or {}))

    def get(self, url: str) -> DecodedImage | None:
        return self._images.get(url)

    def __contains__(self, url):
        return url in self._images

    def __len__(self):
        return len(self._images)

    def __iter__(self):
        return iter(self._images)

    @property
    def misses(self) -> list[str]:
        return [u for u, img in self._images.items() if img is None]

    @classmethod
    def from_bytes(cls, blobs: Mapping[str, bytes]) -> "ImageStore":
        """Decode already-downloaded bodies; undecodable ones become misses."""
        images: dict[str, DecodedImage | None] = {}
        for url, data in blobs.items():
            try:
                images[url] = decode_image(url, data)
            except MediaError as e:
                logger.warning("image unavailable: %s", e)
                images[url] = None
        return cls(images)


def _dedupe(urls: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(u for u in urls if u))


def prefetch_images(urls: Iterable[str], fetcher: Fetcher | None = None, *,
                    cache_dir: str | None = None, max_workers: int = MAX_WORKERS) -> ImageStore:
    """
    Fetch and decode every distinct url concurrently. Order of the input is
    kept in the store; failures are logged and stored as misses so a broken
    link never stops the report.
    """
    unique = _dedupe(urls)
    if not unique:
        return ImageStore()

    fetch = fetcher or http_fetch
    if cache_dir:
        fetch = cached_fetcher(fetch, cache_dir)

    def load(url: str) -> DecodedImage | None:
        try:
            data = fetch(url)
        except MediaError as e:
            logger.warning("image unavailable: %s", e)
            return None
        except Exception as e:
            # any fetcher failure is a miss
            logger.warning("image unavailable: %s: %s: %s", url, type(e).__name__, e)
            return None
        try:
            return decode_image(url, data)
        except MediaError as e:
            logger.warning("image unavailable: %s", e)
            return None

    workers = max(1, min(max_workers, len(unique)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(load, unique))

    store = ImageStore(dict(zip(unique, results)))
    logger.info("prefetched %d image(s), %d unavailable", len(store), len(store.misses))
    return store
