"""Custom exception hierarchy for the CORS relay."""


class RelayError(Exception):
    """Base exception for all relay errors.

    Attributes:
        status_code: HTTP status returned to the caller for this error
    """

    status_code = 500


class ConfigurationError(RelayError):
    """Raised when configuration is missing or invalid."""


class TargetError(RelayError):
    """Raised when the inbound path does not resolve to a usable target."""

    status_code = 400


class MissingTarget(TargetError):
    """The inbound path is empty."""


class MalformedTarget(TargetError):
    """The inbound path does not parse as a URL."""


class UnsupportedProtocol(TargetError):
    """The resolved target uses a scheme other than http or https."""


class TooManyRedirects(RelayError):
    """The redirect chain exceeded the hop budget."""

    status_code = 418


class UpstreamError(RelayError):
    """Raised when the upstream target cannot be used.

    Attributes:
        message: Error message
        target: Upstream URL being called (optional)
    """

    status_code = 502

    def __init__(self, message: str, target: str | None = None) -> None:
        super().__init__(message)
        self.target = target


class UpstreamUnavailable(UpstreamError):
    """Raised when the upstream target cannot be reached."""


class UpstreamTimeoutError(UpstreamUnavailable):
    """Raised when an upstream hop exceeds its deadline."""

    status_code = 504


class InvalidRedirect(UpstreamError):
    """Raised when an upstream redirect carries an unparsable Location."""
