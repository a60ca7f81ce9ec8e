class ClinicApiError(Exception):
    """The API answered with an error status or a ``success: false`` envelope."""

    def __init__(self, message: str | None, status_code: int | None = None) -> None:
        super().__init__(message or "Clinic API request failed")
        self.message = message
        self.status_code = status_code


class AuthenticationError(Exception):
    pass


class IncorrectLoginError(AuthenticationError):
    pass
