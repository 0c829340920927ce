"""Image decoding and encoding."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError, ImageWriteError

_GREYSCALE_MODES = {"1", "L", "LA", "La"}
# Full-scale value of modes that are read as-is rather than through "L".
_WIDE_GREYSCALE_SCALE = {"I": 65535.0, "F": 1.0}


def load_image(path: Path) -> np.ndarray:
    """Decode ``path`` into a read-only float64 array scaled to ``[0, 1]``.

    Greyscale sources give ``(H, W)``; everything else is converted to RGB and
    gives ``(H, W, 3)``. 16-bit and 32-bit integer greyscale is scaled by
    65535, float greyscale is taken as already in ``[0, 1]`` and clipped.
    """
    try:
        with Image.open(path) as image:
            image.load()
            raw, scale = _decode_pixels(image)
    except (OSError, UnidentifiedImageError, ValueError) as exc:
        raise ImageDecodeError(f"could not decode {path}: {exc}") from exc
    if not np.all(np.isfinite(raw)):
        raise ImageDecodeError(f"{path} contains non-finite pixel values")
    pixels = np.clip(raw / scale, 0.0, 1.0)
    if pixels.shape[0] < 2 or pixels.shape[1] < 2:
        raise ImageDecodeError(f"{path} is too small to denoise ({pixels.shape[1]}x{pixels.shape[0]})")
    pixels.flags.writeable = False
    return pixels


def _decode_pixels(image: Image.Image) -> tuple[np.ndarray, float]:
    mode = image.mode
    if mode.startswith("I;16"):
        mode = "I"
    if mode in _WIDE_GREYSCALE_SCALE:
        return np.asarray(image, dtype=np.float64), _WIDE_GREYSCALE_SCALE[mode]
    target = "L" if mode in _GREYSCALE_MODES else "RGB"
    return np.asarray(image.convert(target), dtype=np.float64), 255.0


def to_pil(pixels: np.ndarray) -> Image.Image:
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    if pixels.ndim not in (2, 3) or (pixels.ndim == 3 and pixels.shape[2] != 3):
        raise ValueError(f"cannot encode array of shape {pixels.shape}")
    data = np.rint(np.clip(pixels, 0.0, 1.0) * 255.0).astype(np.uint8)
    return Image.fromarray(data)


def save_image(pixels: np.ndarray, path: Path) -> Path:
    try:
        image = to_pil(pixels)
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path)
    except (OSError, ValueError) as exc:
        raise ImageWriteError(f"could not write {path}: {exc}") from exc
    return path
