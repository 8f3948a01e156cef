class GrayscaleError(Exception):
    """Base class for all conversion failures."""


class MissingSourceError(GrayscaleError):
    """An <img> element has no resolvable "src"."""


class MissingBackgroundError(GrayscaleError):
    """
    A non-image element has no "background-image", neither inline nor
    computed.
    """


class LoadError(GrayscaleError):
    """The offscreen image could not be fetched or decoded."""


class ExtractionError(GrayscaleError):
    """
    Pixel data could not be read from a drawing surface, usually because
    a cross-origin image tainted it.
    """


class EncodeError(GrayscaleError):
    """The converted surface could not be encoded as an image."""
