"""Errors raised by provider gateways."""


class GatewayError(Exception):
    """Base class for failures talking to an external provider."""


class AuthError(GatewayError):
    """The OAuth client-credentials exchange failed."""


class UpstreamError(GatewayError):
    """A provider answered non-2xx, with an unparseable body, or not at all."""

    def __init__(
        self, message: str, *, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotFoundError(GatewayError):
    """The product database has no product for a barcode."""


class GenerationError(GatewayError):
    """No generative model produced a usable answer."""

    def __init__(self, message: str, *, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw
