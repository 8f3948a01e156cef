from __future__ import annotations
import asyncio
import logging
import warnings
from typing import Optional
import cairo
import numpy as np
from blinker import Signal
from ..errors import LoadError
from .canvas import surface_from_rgba
from .document import Document, origin_of
from .fetch import Response, fetch

with warnings.catch_warnings():
    warnings.simplefilter("ignore", DeprecationWarning)
    import pyvips


logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decodes any format libvips understands into a (height, width, 4)
    RGBA uint8 array.
    """
    try:
        image = pyvips.Image.new_from_buffer(data, "", access="sequential")
        if image.interpretation not in ("srgb", "rgb"):
            image = image.colourspace("srgb")
        if image.format != "uchar":
            image = image.cast("uchar")
        if image.bands == 3:
            image = image.bandjoin(255)
        elif image.bands > 4:
            image = image.extract_band(0, n=4)
        pixels = image.write_to_memory()
    except pyvips.error.Error as e:
        raise LoadError(f"Cannot decode image: {e}") from e

    return np.frombuffer(pixels, dtype=np.uint8).reshape(
        (image.height, image.width, 4)
    )


def _to_surface(rgba: np.ndarray) -> cairo.ImageSurface:
    # Cairo rejects dimensions above 32767.
    try:
        return surface_from_rgba(rgba)
    except (cairo.Error, MemoryError) as e:
        height, width = rgba.shape[:2]
        raise LoadError(
            f"Cannot hold a {width}x{height} image in a surface: {e}"
        ) from e


class OffscreenImage:
    """
    An image that is never displayed. Assigning `src` starts an
    asynchronous load on the running event loop; exactly one of the
    "load" or "error" events follows.
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        cross_origin: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        self.document = document or Document()
        self.cross_origin = cross_origin
        self.user_agent = user_agent
        self.surface: Optional[cairo.ImageSurface] = None
        self.origin_clean = True
        self.complete = False
        self.signals = {"load": Signal(), "error": Signal()}
        self._src = ""
        self._task: Optional[asyncio.Task] = None

    @property
    def src(self) -> str:
        return self._src

    @src.setter
    def src(self, url: str):
        self._src = self.document.resolve_url(url)
        self.complete = False
        self.surface = None
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._load(self._src))

    @property
    def natural_width(self) -> int:
        return self.surface.get_width() if self.surface else 0

    @property
    def natural_height(self) -> int:
        return self.surface.get_height() if self.surface else 0

    async def _load(self, url: str):
        try:
            response = await fetch(url, self.user_agent)
            origin_clean = self._check_origin(response)
            rgba = decode_image(response.body)
            surface = _to_surface(rgba)
        except LoadError as e:
            if url != self._src:
                return
            logger.warning(f"Failed to load image {url[:80]}: {e}")
            self.complete = True
            self.signals["error"].send(self, error=e)
            return

        if url != self._src:
            # A newer src superseded this load.
            return
        self.origin_clean = origin_clean
        self.surface = surface
        self.complete = True
        logger.debug(
            f"Loaded {self.natural_width}x{self.natural_height} image"
        )
        self.signals["load"].send(self)

    def _check_origin(self, response: Response) -> bool:
        """
        Returns whether pixels of the response may be read back. Raises
        LoadError if a CORS request was refused.
        """
        document_origin = self.document.origin
        if document_origin is None or response.url.startswith("data:"):
            return True
        image_origin = origin_of(response.url)
        if image_origin == document_origin:
            return True
        if image_origin == "file://":
            return False

        if self.cross_origin is None:
            return False
        allowed = response.headers.get("access-control-allow-origin")
        if allowed not in ("*", document_origin):
            raise LoadError(
                f"Cross-origin request to {response.url} blocked: "
                f"Access-Control-Allow-Origin is {allowed!r}"
            )
        return True
