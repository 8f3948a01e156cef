# flake8: noqa:F401
from .document import Document, Element, Style, origin_of
from .style import Stylesheet, computed_style, parse_url
from .event import bind, unbind
from .image import OffscreenImage
from .canvas import DrawingSurface, ImageData
