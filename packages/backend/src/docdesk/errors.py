"""Application error hierarchy.

Learn: services raise these instead of HTTPException so they stay usable
outside a request (CLI, tests). main.py registers one exception handler that
turns any AppError into a JSON response with the right status code.

    AppError (500)
    ├── ValidationError         400
    ├── UnauthorizedError       401
    ├── ForbiddenError          403
    ├── NotFoundError           404
    ├── ConflictError           409
    ├── AuthConfigurationError  503
    └── ConfigurationError      raised at startup, never rendered
"""

from typing import Optional


class AppError(Exception):
    """Base for all docdesk errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, fields: Optional[dict[str, list[str]]] = None):
        super().__init__(message)
        self.fields = fields or {}


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "You do not have permission to do this"):
        super().__init__(message)


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Optional[str] = None):
        if identifier:
            message = f"{resource} '{identifier}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.identifier = identifier


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = 409


class AuthConfigurationError(AppError):
    """The session authority cannot issue tokens (no secret configured)."""

    code = "AUTH_NOT_CONFIGURED"
    status_code = 503

    def __init__(
        self,
        message: str = "Authentication is not configured on this server",
    ):
        super().__init__(message)


class ConfigurationError(AppError):
    """Startup configuration is invalid."""

    code = "CONFIGURATION_ERROR"

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {p}" for p in problems)
        )
