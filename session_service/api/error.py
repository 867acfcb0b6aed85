from fastapi import status
from session_service.libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Single translation table from business error code to HTTP status
ERROR_STATUS = {
    # Credentials, tokens and session state
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_MISSING": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_INVALID": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_WRONG_KIND": status.HTTP_401_UNAUTHORIZED,
    "SESSION_INVALID": status.HTTP_401_UNAUTHORIZED,
    "SESSION_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "SESSION_INACTIVE": status.HTTP_401_UNAUTHORIZED,
    "USER_NOT_FOUND": status.HTTP_401_UNAUTHORIZED,
    "REFRESH_TOKEN_INVALID": status.HTTP_401_UNAUTHORIZED,
    "REFRESH_TOKEN_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_API_KEY": status.HTTP_401_UNAUTHORIZED,
    # Requests
    "SESSION_IDENTIFIER_REQUIRED": status.HTTP_400_BAD_REQUEST,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "SESSION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TARGET_USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


def to_http_error(error: Error) -> Exception:
    """Map a use-case Error to the exception the app handlers render"""
    status_code = ERROR_STATUS.get(error.code)
    if status_code is None:
        return ServerError(error)
    return ClientError(error, status_code=status_code)
