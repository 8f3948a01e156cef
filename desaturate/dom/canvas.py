from __future__ import annotations
import io
import base64
import logging
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
import cairo
import numpy as np
from ..errors import EncodeError, ExtractionError

with warnings.catch_warnings():
    warnings.simplefilter("ignore", DeprecationWarning)
    import pyvips

if TYPE_CHECKING:
    from .image import OffscreenImage


logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 0.92
EMPTY_DATA_URL = "data:,"


@dataclass
class ImageData:
    """
    Straight (non-premultiplied) RGBA pixels. `data` is a flat uint8 array
    of width * height * 4 values in row-major order.
    """
    width: int
    height: int
    data: np.ndarray


def surface_to_rgba(surface: cairo.ImageSurface) -> np.ndarray:
    """
    Returns the pixels of an ARGB32 surface as a (height, width, 4) RGBA
    array. Cairo stores premultiplied native-endian ARGB, i.e. BGRA in
    memory on little-endian systems.
    """
    surface.flush()
    width, height = surface.get_width(), surface.get_height()
    stride = surface.get_stride()
    buf = np.frombuffer(surface.get_data(), dtype=np.uint8)
    bgra = buf.reshape((height, stride))[:, :width * 4]
    bgra = bgra.reshape((height, width, 4)).astype(np.uint32)

    alpha = bgra[:, :, 3]
    rgba = np.empty((height, width, 4), dtype=np.uint8)
    rgba[:, :, 3] = alpha
    safe_alpha = np.where(alpha == 0, 1, alpha)
    for dst, src in ((0, 2), (1, 1), (2, 0)):
        channel = (bgra[:, :, src] * 255 + safe_alpha // 2) // safe_alpha
        channel = np.where(alpha == 0, 0, np.minimum(channel, 255))
        rgba[:, :, dst] = channel
    return rgba


def rgba_to_surface_data(rgba: np.ndarray) -> np.ndarray:
    """
    Converts a (height, width, 4) RGBA array into premultiplied BGRA as
    expected by cairo.FORMAT_ARGB32.
    """
    rgba = rgba.astype(np.uint32)
    alpha = rgba[:, :, 3]
    bgra = np.empty(rgba.shape, dtype=np.uint8)
    bgra[:, :, 3] = alpha
    for dst, src in ((0, 2), (1, 1), (2, 0)):
        bgra[:, :, dst] = (rgba[:, :, src] * alpha + 127) // 255
    return bgra


def surface_from_rgba(rgba: np.ndarray) -> cairo.ImageSurface:
    height, width = rgba.shape[:2]
    surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)
    if width and height:
        _write_pixels(surface, rgba_to_surface_data(rgba), 0, 0)
    return surface


def _write_pixels(
    surface: cairo.ImageSurface, bgra: np.ndarray, x: int, y: int
):
    surface.flush()
    stride = surface.get_stride()
    height, width = bgra.shape[:2]
    buf = np.ndarray(
        shape=(surface.get_height(), stride),
        dtype=np.uint8,
        buffer=surface.get_data(),
    )
    region = buf[y:y + height, x * 4:(x + width) * 4]
    region[:] = bgra.reshape((height, width * 4))
    surface.mark_dirty()


class DrawingSurface:
    """
    An offscreen, pixel-addressable canvas backed by a cairo image surface.
    """

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self.surface = cairo.ImageSurface(
            cairo.FORMAT_ARGB32, self.width, self.height
        )
        self.origin_clean = True

    def draw_image(self, image: OffscreenImage, x: float = 0, y: float = 0):
        """
        Paints the image once at (x, y), unscaled. Drawing an image that is
        not origin-clean taints the surface.
        """
        if not image.origin_clean:
            logger.debug("Drawing a cross-origin image taints the surface")
            self.origin_clean = False
        ctx = cairo.Context(self.surface)
        ctx.set_source_surface(image.surface, x, y)
        ctx.set_operator(cairo.OPERATOR_SOURCE)
        ctx.rectangle(x, y, image.natural_width, image.natural_height)
        ctx.fill()
        self.surface.flush()

    def get_image_data(self) -> ImageData:
        if not self.origin_clean:
            raise ExtractionError(
                "The surface has been tainted by cross-origin data"
            )
        if self.width == 0 or self.height == 0:
            raise ExtractionError(
                f"Cannot read pixels of a {self.width}x{self.height} surface"
            )
        rgba = surface_to_rgba(self.surface)
        return ImageData(self.width, self.height, rgba.reshape(-1))

    def put_image_data(self, image_data: ImageData, x: int = 0, y: int = 0):
        """Writes the pixels back, clipped to the surface bounds."""
        rgba = image_data.data.reshape(
            (image_data.height, image_data.width, 4)
        )
        left, top = max(x, 0), max(y, 0)
        right = min(x + image_data.width, self.width)
        bottom = min(y + image_data.height, self.height)
        if right <= left or bottom <= top:
            return
        rgba = rgba[top - y:bottom - y, left - x:right - x]
        _write_pixels(self.surface, rgba_to_surface_data(rgba), left, top)

    def to_data_url(
        self,
        mime_type: str = "image/png",
        quality: Optional[float] = None,
    ) -> str:
        """
        Encodes the surface as a base64 data URL. JPEG and WebP go through
        libvips; any other type is encoded as PNG.
        """
        if self.width == 0 or self.height == 0:
            return EMPTY_DATA_URL

        mime_type = (mime_type or "image/png").lower()
        try:
            if mime_type in ("image/jpeg", "image/webp"):
                body = self._encode_vips(mime_type, quality)
            else:
                mime_type = "image/png"
                stream = io.BytesIO()
                self.surface.write_to_png(stream)
                body = stream.getvalue()
        except (cairo.Error, pyvips.error.Error, MemoryError) as e:
            raise EncodeError(
                f"Cannot encode surface as {mime_type}: {e}"
            ) from e

        payload = base64.b64encode(body).decode("ascii")
        return f"data:{mime_type};base64,{payload}"

    def _encode_vips(self, mime_type: str, quality: Optional[float]) -> bytes:
        if quality is None or not 0 <= quality <= 1:
            quality = DEFAULT_JPEG_QUALITY
        q = max(1, round(quality * 100))

        rgba = np.ascontiguousarray(surface_to_rgba(self.surface))
        image = pyvips.Image.new_from_memory(
            rgba.tobytes(), self.width, self.height, 4, "uchar"
        ).copy(interpretation="srgb")
        if mime_type == "image/jpeg":
            # No alpha in JPEG, transparent pixels end up black.
            image = image.flatten(background=[0, 0, 0]).cast("uchar")
            return image.jpegsave_buffer(Q=q)
        return image.webpsave_buffer(Q=q)
