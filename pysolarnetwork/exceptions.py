from typing import Optional


class SolarNetworkException(Exception):
    pass


class InvalidConfigurationParameter(SolarNetworkException):
    pass


class SigningKeyError(SolarNetworkException):
    """A saved, unexpired signing key is required but not available."""
    pass


class SolarNetworkApiError(SolarNetworkException):
    """
    An error response from a SolarNetwork API request.

    Raised for transport failures, non-2xx HTTP status codes, malformed JSON
    and `{"success": false}` result envelopes.
    """

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        self.message = message
        self.code = code
        self.status = status
        if code:
            message = f"{message} ({code})"
        super().__init__(message)
