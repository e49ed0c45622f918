from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, *, details: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidRequestError(ServiceError):
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class PermissionDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class RateLimitedError(ServiceError):
    status_code = 429

    def __init__(self, message: str, *, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["retry_after"] = self.retry_after
        return payload


class BackendError(ServiceError):
    status_code = 500
