from fastapi import HTTPException, status


class MissingParameterException(HTTPException):
    """Exception raised when a required request parameter is missing or empty."""

    def __init__(self, parameter: str, detail: str = None):
        self.parameter = parameter
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail or f"Parameter '{parameter}' is required."
        )


class InvalidParameterException(HTTPException):
    """Exception raised when a request parameter has an unusable value."""

    def __init__(self, detail: str = "Invalid request parameter"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class ApiKeyRequiredException(HTTPException):
    """Exception raised when a gated route is called without an API key."""

    def __init__(self, detail: str = "API key is required."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "ApiKey"},
        )


class InvalidApiKeyException(HTTPException):
    """Exception raised when the supplied API key was never issued."""

    def __init__(self, detail: str = "Invalid API key."):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class ExpiredApiKeyException(HTTPException):
    """Exception raised when the supplied API key is past its expiration date."""

    def __init__(self, detail: str = "API key has expired."):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class NotFoundException(HTTPException):
    """Exception raised when a collaborator returns no results."""

    def __init__(self, detail: str = "No results found."):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class ExternalAPIException(HTTPException):
    """Exception raised when an external API call fails."""

    def __init__(self, detail: str = "External API call failed"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail
        )


class TranscodeException(ExternalAPIException):
    """Exception raised when audio extraction or encoding fails."""

    def __init__(self, detail: str = "Error processing the audio."):
        super().__init__(detail=detail)


class KeyStoreError(Exception):
    """Raised when the API key file exists but cannot be read or parsed."""

    def __init__(self, message: str = "API key store is unreadable"):
        self.message = message
        super().__init__(self.message)
