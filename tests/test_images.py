"""Tests for meshcanvas.images."""

import io
import logging
import threading

import numpy as np
import pytest
from PIL import Image

from meshcanvas.images import ImageCache, decode_image, to_rgba_array


def _png_bytes(color=(255, 0, 0), size=(3, 2)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def cache():
    c = ImageCache()
    yield c
    c.shutdown(wait=True)


class TestDecode:

    def test_decode_bytes(self):
        arr = decode_image(_png_bytes())
        assert arr.shape == (2, 3, 4)
        assert arr.dtype == np.float32
        np.testing.assert_allclose(arr[0, 0], [1.0, 0.0, 0.0, 1.0])

    def test_decode_path(self, tmp_path):
        path = tmp_path / "img.png"
        path.write_bytes(_png_bytes((0, 0, 255)))
        np.testing.assert_allclose(decode_image(path)[1, 2], [0.0, 0.0, 1.0, 1.0])

    def test_to_rgba_from_uint8_rgb(self):
        arr = to_rgba_array(np.full((2, 2, 3), 255, dtype=np.uint8))
        np.testing.assert_allclose(arr, np.ones((2, 2, 4)))

    def test_to_rgba_from_pil(self):
        arr = to_rgba_array(Image.new("L", (4, 1), 0))
        assert arr.shape == (1, 4, 4)
        np.testing.assert_allclose(arr[0, 0], [0.0, 0.0, 0.0, 1.0])

    def test_to_rgba_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            to_rgba_array(np.zeros((4, 4)))


class TestImageCache:

    def test_unknown_ref(self, cache):
        assert cache.get("nope") is None
        assert cache.get(None) is None

    def test_register(self, cache):
        seen = []
        cache.add_listener(seen.append)
        cache.register("a", np.zeros((2, 2, 4), dtype=np.float32))
        assert cache.get("a").shape == (2, 2, 4)
        assert seen == ["a"]

    def test_request_then_wait(self, cache):
        seen = []
        cache.add_listener(seen.append)
        cache.request("red", _png_bytes())
        assert cache.get("red") is None
        assert cache.wait(timeout=10) == ["red"]
        assert not cache.is_pending("red")
        np.testing.assert_allclose(cache.get("red")[0, 0], [1.0, 0.0, 0.0, 1.0])
        assert seen == ["red"]

    def test_wait_timeout_leaves_decode_pending(self, cache, caplog):
        gate = threading.Event()
        cache.executor.submit(gate.wait)  # occupy the single worker
        cache.request("red", _png_bytes())
        with caplog.at_level(logging.DEBUG, logger="meshcanvas.images"):
            assert cache.wait(timeout=0.05) == []
        assert cache.is_pending("red")
        assert "Timed out" in caplog.text
        gate.set()
        assert cache.wait(timeout=10) == ["red"]

    def test_repeat_request_ignored(self, cache):
        cache.request("red", _png_bytes())
        cache.wait(timeout=10)
        cache.request("red", b"garbage")
        assert not cache.is_pending("red")
        assert cache.get("red") is not None

    def test_failed_decode(self, cache, caplog):
        seen = []
        cache.add_listener(seen.append)
        cache.request("bad", b"not an image")
        with caplog.at_level(logging.WARNING, logger="meshcanvas.images"):
            assert cache.wait(timeout=10) == []
        assert cache.has_failed("bad")
        assert cache.get("bad") is None
        assert seen == []
        assert "decode failed" in caplog.text

    def test_retry_after_failure(self, cache):
        cache.request("img", b"not an image")
        cache.wait(timeout=10)
        cache.request("img", _png_bytes())
        assert not cache.has_failed("img")
        cache.wait(timeout=10)
        assert cache.get("img") is not None

    def test_discard(self, cache):
        cache.register("a", np.zeros((1, 1, 3), dtype=np.uint8))
        cache.discard("a")
        assert cache.get("a") is None

    def test_failing_listener_isolated(self, cache):
        seen = []

        def broken(ref):
            raise RuntimeError("boom")

        cache.add_listener(broken)
        cache.add_listener(seen.append)
        cache.register("a", np.zeros((1, 1, 4), dtype=np.float32))
        assert seen == ["a"]
