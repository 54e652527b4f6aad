import logging
import os

import pytest
import requests
from PIL import Image

from inspection_pdf.errors import MediaError
from inspection_pdf.media import (
    ImageStore, cache_path, decode_image, http_fetch, prefetch_images, sanitize_filename,
)

from conftest import ATTIC_URL, BROKEN_URL, HEADER_URL, ROOF_URL, image_bytes


def test_prefetch_fetches_each_url_once(fake_fetcher):
    store = prefetch_images([ROOF_URL, ATTIC_URL, ROOF_URL, "", ATTIC_URL], fake_fetcher)
    assert sorted(fake_fetcher.calls) == sorted([ROOF_URL, ATTIC_URL])
    assert list(store) == [ROOF_URL, ATTIC_URL]
    roof = store.get(ROOF_URL)
    assert (roof.width, roof.height) == (4000, 3000)


def test_prefetch_records_failures_as_misses(fake_fetcher, caplog):
    with caplog.at_level(logging.WARNING, logger="inspection_pdf.media"):
        store = prefetch_images([HEADER_URL, BROKEN_URL], fake_fetcher)
    assert store.get(BROKEN_URL) is None
    assert BROKEN_URL in store
    assert store.misses == [BROKEN_URL]
    assert store.get(HEADER_URL) is not None
    assert any(BROKEN_URL in r.getMessage() for r in caplog.records)


def test_undecodable_body_is_a_miss():
    store = prefetch_images([ROOF_URL], lambda url: b"<html>not an image</html>")
    assert store.get(ROOF_URL) is None


def test_prefetch_without_urls_does_not_fetch():
    def explode(url):
        raise AssertionError("should not be called")
    assert len(prefetch_images([], explode)) == 0


def test_decode_image_reads_size():
    img = decode_image("u", image_bytes(64, 32, fmt="JPEG"))
    assert (img.width, img.height) == (64, 32)
    with pytest.raises(MediaError):
        decode_image("u", b"")


def test_disk_cache_serves_second_run(tmp_path, fake_fetcher):
    prefetch_images([ROOF_URL], fake_fetcher, cache_dir=str(tmp_path))
    assert os.path.exists(cache_path(str(tmp_path), ROOF_URL))

    def offline(url):
        raise MediaError(url, "offline")
    store = prefetch_images([ROOF_URL], offline, cache_dir=str(tmp_path))
    assert store.get(ROOF_URL).width == 4000


def test_cache_names_do_not_collide_across_hosts(tmp_path):
    a = cache_path(str(tmp_path), "https://a.example.com/photo.jpg")
    b = cache_path(str(tmp_path), "https://b.example.com/photo.jpg")
    assert a != b
    assert a.endswith("photo.jpg")


def test_sanitize_filename():
    assert sanitize_filename("https://x.com/a b/c%20d.jpg?x=1") == "c_20d.jpg"
    assert sanitize_filename("https://x.com/") == "media"


def test_http_fetch_wraps_request_errors(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("no route to host")
    monkeypatch.setattr(requests, "get", boom)
    with pytest.raises(MediaError) as exc:
        http_fetch("https://media.example.com/a.jpg")
    assert exc.value.url == "https://media.example.com/a.jpg"
    assert "no route to host" in exc.value.reason


def test_store_from_bytes_is_read_only(image_blobs):
    store = ImageStore.from_bytes(image_blobs)
    assert len(store) == 3
    with pytest.raises(TypeError):
        store._images[ROOF_URL] = None


def test_oversized_image_is_a_miss(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(MediaError):
        decode_image(ROOF_URL, image_bytes(100, 100))
    store = prefetch_images([ROOF_URL], lambda url: image_bytes(100, 100))
    assert store.misses == [ROOF_URL]


def test_unexpected_fetcher_error_is_a_miss(fake_fetcher):
    def flaky(url):
        if url == ROOF_URL:
            raise TimeoutError("read timed out")
        return fake_fetcher(url)
    store = prefetch_images([ROOF_URL, ATTIC_URL], flaky)
    assert store.misses == [ROOF_URL]
    assert store.get(ATTIC_URL) is not None


def test_cache_write_failure_still_returns_image(tmp_path, fake_fetcher, caplog):
    # a directory where the temp file should go makes the write fail
    os.makedirs(cache_path(str(tmp_path), ROOF_URL) + ".part")
    with caplog.at_level(logging.WARNING, logger="inspection_pdf.media"):
        store = prefetch_images([ROOF_URL], fake_fetcher, cache_dir=str(tmp_path))
    assert store.get(ROOF_URL).width == 4000
    assert any("could not cache" in r.getMessage() for r in caplog.records)
