"""Still-image decoding and point-sampled resizing.

Pixel buffers are ``numpy.ndarray`` of shape ``(height, width, 4)`` and dtype
``uint8`` (RGBA) everywhere.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


def blank_frame(width: int, height: int) -> np.ndarray:
    """All-zero RGBA buffer (black, alpha 0)."""
    return np.zeros((height, width, 4), dtype=np.uint8)


def load_rgba(path: str | Path) -> Optional[np.ndarray]:
    """Decode an image file fully into an RGBA array; None if unreadable."""
    try:
        with Image.open(path) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.debug("decode failed for %s: %s", path, e)
        return None
    if rgba.width <= 0 or rgba.height <= 0:
        return None
    return np.asarray(rgba, dtype=np.uint8)


def _sample_indices(src_len: int, dst_len: int) -> np.ndarray:
    if dst_len <= 1:
        return np.zeros(dst_len, dtype=np.intp)
    idx = np.arange(dst_len, dtype=np.int64) * (src_len - 1) // (dst_len - 1)
    return np.clip(idx, 0, src_len - 1).astype(np.intp)


def resample(src: Optional[np.ndarray], dst_w: int, dst_h: int) -> np.ndarray:
    """Nearest-neighbour resize of an RGBA buffer to ``dst_w`` x ``dst_h``.

    Destination column ``x`` reads source column ``x * (src_w - 1) // (dst_w - 1)``
    (0 when ``dst_w == 1``), rows likewise. No blending, so identical inputs always
    give identical bytes. A missing or empty source yields a transparent-black
    buffer of the destination size.
    """
    if src is None or src.ndim != 3 or src.shape[0] == 0 or src.shape[1] == 0:
        return blank_frame(dst_w, dst_h)
    src_h, src_w = src.shape[0], src.shape[1]
    ys = _sample_indices(src_h, dst_h)
    xs = _sample_indices(src_w, dst_w)
    return np.ascontiguousarray(src[ys[:, None], xs[None, :], :4], dtype=np.uint8)


__all__ = ["blank_frame", "load_rgba", "resample"]
