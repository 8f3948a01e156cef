import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional
from .config import Config, get_config
from .dom.canvas import DrawingSurface
from .dom.document import Element
from .dom.event import bind, unbind
from .dom.image import OffscreenImage
from .dom.style import computed_style, parse_url
from .errors import (
    GrayscaleError,
    MissingBackgroundError,
    MissingSourceError,
)
from .luminance import to_grayscale


logger = logging.getLogger(__name__)

IMAGE_TAG = "img"
BACKGROUND_IMAGE = "background-image"


@dataclass
class ConversionResult:
    element: Element
    uri: Optional[str] = None
    error: Optional[GrayscaleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def is_image_element(element: Element) -> bool:
    return element.tag_name.lower() == IMAGE_TAG


def _background_value(element: Element) -> str:
    value = element.style[BACKGROUND_IMAGE].strip()
    if not value or value == "none":
        value = computed_style(element).get(BACKGROUND_IMAGE, "").strip()
    if value == "none":
        return ""
    return value


def resolve_source(element: Element) -> str:
    """
    Returns the URL of the image an element displays.

    Raises:
        MissingSourceError: an <img> without "src".
        MissingBackgroundError: any other element without a
          "background-image".
    """
    tag = element.tag_name.lower()
    if tag == IMAGE_TAG:
        url = element.src
        if not url:
            raise MissingSourceError(
                f'<{tag}> element does not have the "src" attribute set'
            )
        return url

    value = _background_value(element)
    url = parse_url(value) if value else None
    if url is None:
        url = value
    if not url:
        raise MissingBackgroundError(
            f'<{tag}> element does not have "background-image" CSS set'
        )
    return url


def render_grayscale(image: OffscreenImage, config: Config) -> str:
    """
    Draws a loaded image onto a fresh surface, converts its pixels to
    grayscale and returns the surface as a data URL.

    Raises:
        ExtractionError: the pixels cannot be read back.
        EncodeError: the surface cannot be encoded.
    """
    width, height = image.natural_width, image.natural_height
    surface = DrawingSurface(width, height)
    surface.draw_image(image, 0, 0)

    image_data = surface.get_image_data()
    to_grayscale(image_data.data, width, height)
    surface.put_image_data(image_data, 0, 0)

    return surface.to_data_url(config.output_type, config.output_quality)


def apply_result(element: Element, uri: str):
    if is_image_element(element):
        element.src = uri
    else:
        element.style[BACKGROUND_IMAGE] = f"url({uri})"


def convert(
    element: Element, config: Optional[Config] = None
) -> asyncio.Future:
    """
    Starts converting the image shown by `element` to grayscale and
    returns a future that resolves exactly once to a ConversionResult.
    The future never raises; failures are carried in `result.error`.

    Must be called with a running event loop. If the image load never
    finishes, neither does the future.
    """
    config = config or get_config()
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    try:
        url = resolve_source(element)
    except GrayscaleError as e:
        logger.warning(f"Cannot convert {element!r}: {e}")
        future.set_result(ConversionResult(element, error=e))
        return future

    image = OffscreenImage(
        document=element.owner_document,
        cross_origin=config.cross_origin,
        user_agent=config.user_agent,
    )

    def settle(result: ConversionResult):
        unbind(image, "load", on_load)
        unbind(image, "error", on_error)
        if not future.done():
            future.set_result(result)

    def on_load(sender):
        try:
            uri = render_grayscale(image, config)
        except GrayscaleError as e:
            logger.warning(f"Cannot convert pixels of {url[:80]}: {e}")
            settle(ConversionResult(element, error=e))
            return
        apply_result(element, uri)
        logger.debug(f"Converted {element!r}")
        settle(ConversionResult(element, uri=uri))

    def on_error(sender, error):
        settle(ConversionResult(element, error=error))

    bind(image, "load", on_load)
    bind(image, "error", on_error)
    logger.debug(f"Loading {url[:80]}")
    image.src = url
    return future


def _raise_error(error: Optional[Exception] = None):
    if error is not None:
        raise error


def _notify(callback: Callable, result: ConversionResult):
    if result.error is not None:
        callback(result.error)
    else:
        callback()


def grayscale(
    element: Element, callback: Optional[Callable] = None
) -> asyncio.Future:
    """
    Callback flavour of convert(). The callback is invoked once, with the
    error on failure or without arguments on success. Without a callback,
    errors are raised: synchronously if the element has no image at all,
    otherwise from the event loop as an unhandled exception.
    """
    if not callable(callback):
        callback = _raise_error

    future = convert(element)
    if future.done():
        _notify(callback, future.result())
        return future

    def done(fut: asyncio.Future):
        if not fut.cancelled():
            _notify(callback, fut.result())

    future.add_done_callback(done)
    return future


async def convert_or_raise(
    element: Element, config: Optional[Config] = None
) -> str:
    """
    Converts the element and returns the new data URL.

    Raises:
        GrayscaleError: on any failure.
    """
    result = await convert(element, config)
    if result.error is not None:
        raise result.error
    return result.uri
