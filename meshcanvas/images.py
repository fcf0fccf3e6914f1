"""Decoded image cache for point image fills.

Decoding runs on a worker thread; the event thread collects finished decodes
with ``poll()``. Until a reference has decoded successfully it is treated as
absent and the point renders as a plain gradient.
"""

from __future__ import annotations

import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, str, Path]


def decode_image(source: ImageSource) -> np.ndarray:
    """Decode bytes or a file path into a float32 RGBA array in [0, 1]."""
    if isinstance(source, (bytes, bytearray)):
        img = Image.open(io.BytesIO(source))
    else:
        img = Image.open(source)
    img = img.convert("RGBA")
    return np.asarray(img, dtype=np.float32) / 255.0


def to_rgba_array(image) -> np.ndarray:
    """Accept a PIL image or an (H, W, 3|4) array (uint8 or float) and return float32 RGBA."""
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGBA"), dtype=np.float32) / 255.0

    arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 3|4) image array, got shape {arr.shape}")
    if arr.dtype == np.uint8:
        arr = arr.astype(np.float32) / 255.0
    else:
        arr = np.clip(arr.astype(np.float32), 0.0, 1.0)
    if arr.shape[2] == 3:
        alpha = np.ones(arr.shape[:2] + (1,), dtype=np.float32)
        arr = np.concatenate([arr, alpha], axis=2)
    return arr


class ImageCache:
    """Fire-and-forget image decoding keyed by opaque reference strings."""

    def __init__(self, max_workers: int = 1):
        self.executor: ThreadPoolExecutor = ThreadPoolExecutor(max_workers=max_workers)
        self._images: dict[str, np.ndarray] = {}
        self._pending: dict[str, Future] = {}
        self._failed: set[str] = set()
        self._listeners: list[Callable[[str], None]] = []

    def get(self, ref: Optional[str]) -> Optional[np.ndarray]:
        """Decoded RGBA array, or None if unknown, pending or failed."""
        if ref is None:
            return None
        return self._images.get(ref)

    def is_pending(self, ref: str) -> bool:
        return ref in self._pending

    def has_failed(self, ref: str) -> bool:
        return ref in self._failed

    def register(self, ref: str, image) -> None:
        """Store an already-decoded image synchronously."""
        self._images[ref] = to_rgba_array(image)
        self._failed.discard(ref)
        self._pending.pop(ref, None)
        self._notify(ref)

    def request(self, ref: str, source: ImageSource) -> None:
        """Start decoding ``source`` in the background. Repeat requests are ignored."""
        if ref in self._images or ref in self._pending:
            return
        self._failed.discard(ref)
        self._pending[ref] = self.executor.submit(decode_image, source)

    def poll(self) -> list[str]:
        """Collect finished decodes. Returns the refs that became available."""
        completed = []
        for ref, future in list(self._pending.items()):
            if not future.done():
                continue
            del self._pending[ref]
            try:
                self._images[ref] = future.result()
            except Exception:
                self._failed.add(ref)
                logger.warning("Image decode failed for %s", ref, exc_info=True)
                continue
            completed.append(ref)
            self._notify(ref)
        return completed

    def wait(self, timeout: Optional[float] = None) -> list[str]:
        """Block until every pending decode finishes (or *timeout* passes per decode), then poll."""
        for ref, future in list(self._pending.items()):
            try:
                # Decode errors are returned here and reported by poll()
                future.exception(timeout=timeout)
            except FutureTimeout:
                logger.debug("Timed out after %ss waiting for image %s", timeout, ref)
                break
        return self.poll()

    def discard(self, ref: str) -> None:
        self._images.pop(ref, None)
        self._failed.discard(ref)
        future = self._pending.pop(ref, None)
        if future is not None:
            future.cancel()

    def add_listener(self, callback: Callable[[str], None]) -> None:
        """Called with the ref whenever an image becomes available."""
        self._listeners.append(callback)

    def _notify(self, ref: str) -> None:
        for cb in list(self._listeners):
            try:
                cb(ref)
            except Exception:
                logger.warning("Image cache listener %r raised", cb, exc_info=True)

    def shutdown(self, wait: bool = False) -> None:
        self.executor.shutdown(wait=wait)
