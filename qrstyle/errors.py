"""Error taxonomy shared by the render and validate paths."""


class QRStyleError(Exception):
    """Base class for every error raised by qrstyle."""


class ConfigurationError(QRStyleError, ValueError):
    """Invalid style input: bad size/margin, malformed color, unknown style value.

    Raised before anything is drawn.
    """


class CapacityError(QRStyleError):
    """Content does not fit in a symbol at the requested error-correction level."""

    def __init__(self, message: str, content_length: int | None = None,
                 level: str | None = None, capacity: int | None = None):
        super().__init__(message)
        self.content_length = content_length
        self.level = level
        self.capacity = capacity


class AssetLoadError(QRStyleError):
    """The logo image could not be fetched or decoded."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class AdvisoryWarning(UserWarning):
    """A ``warn``-level validator finding.

    Never raised by qrstyle; built from ValidationReport checks so callers can
    route them through :mod:`warnings` or display them.
    """

    def __init__(self, check_id: str, message: str):
        super().__init__(message)
        self.check_id = check_id
        self.message = message
