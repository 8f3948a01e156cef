# flake8: noqa:F401
from .config import VERSION as __version__
from .errors import (
    GrayscaleError,
    MissingSourceError,
    MissingBackgroundError,
    LoadError,
    ExtractionError,
    EncodeError,
)
from .dom.document import Document, Element
from .dom.style import Stylesheet
from .converter import (
    ConversionResult,
    convert,
    convert_or_raise,
    grayscale,
)
