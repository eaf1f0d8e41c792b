"""Service-level errors.

Services raise these instead of ``HTTPException`` so they stay usable outside a
request; ``main.py`` registers one handler that renders them with the same
``{"detail": ...}`` body FastAPI uses.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class BadRequestError(ServiceError):
    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404
