from vreddit_proxy.const import BAD_URL_MESSAGE, INTERNAL_ERROR_MESSAGE


class MediaProxyError(Exception):
    """Base exception for all request pipeline failures."""

    status_code = 500
    default_message = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: str | None = None, status_code: int | None = None, detail: str | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail
        super().__init__(detail or self.message)


class InvalidMediaIdError(MediaProxyError):
    """The media identifier is not a lowercase alphanumeric token."""


class ManifestValidationError(MediaProxyError):
    """The DASH manifest could not be fetched, parsed or validated."""

    status_code = 400
    default_message = BAD_URL_MESSAGE


class MissingVideoError(MediaProxyError):
    """The manifest carries no video adaptation set."""


class ResolutionError(MediaProxyError):
    """A post path could not be resolved to a media identifier."""

    @classmethod
    def bad_url(cls, detail: str | None = None) -> "ResolutionError":
        return cls(BAD_URL_MESSAGE, 400, detail)

    @classmethod
    def unexpected(cls, detail: str | None = None) -> "ResolutionError":
        return cls(INTERNAL_ERROR_MESSAGE, 500, detail)


class UpstreamError(MediaProxyError):
    """The upstream host could not be reached."""

    status_code = 502


class MuxError(MediaProxyError):
    """ffmpeg could not be started or did not produce an artifact."""


class MuxTimeoutError(MuxError):
    status_code = 504
