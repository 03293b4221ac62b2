"""
Custom Exception Classes for the Inventory Portal

This module defines the error taxonomy shared by the session store, the
tenant resolver, the record gateway and the views, so every failure reaches
either an inline message or a defined redirect.
"""

from typing import Any

from fastapi import status


class PortalError(Exception):
    """Base exception class for all portal exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(PortalError):
    """Raised when login or signup does not yield a credential"""

    def __init__(self, message: str = "Invalid username or password.", details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED, details=details or {})


class SessionExpiredError(PortalError):
    """Raised when the stored credential is expired or rejected by the backend"""

    def __init__(self, message: str = "Your session has expired. Please log in again."):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


class AuthorizationError(PortalError):
    """Raised when the current user lacks a role required by an action"""

    def __init__(self, message: str = "You do not have permission to perform this action", required_role: str | None = None):
        details = {"required_role": required_role} if required_role else {}
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN, details=details)


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(PortalError):
    """Raised when a form fails its required-field or non-negative checks"""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        self.field = field
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=error_details)


# ============================================================================
# Backend Exceptions
# ============================================================================


class ApiError(PortalError):
    """Raised when a backend call fails at the transport or HTTP level"""

    def __init__(self, message: str, status_code: int | None = None, details: dict[str, Any] | None = None):
        # Transport failures carry no backend status; surface them as a bad gateway
        self.backend_status = status_code
        super().__init__(
            message=message,
            status_code=status_code or status.HTTP_502_BAD_GATEWAY,
            details=details or {},
        )


class RecordOperationError(ApiError):
    """Raised when a CRUD call on a backend resource fails"""

    def __init__(self, resource: str, operation: str, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            status_code=status_code,
            details={"resource": resource, "operation": operation},
        )
        self.resource = resource
        self.operation = operation


# ============================================================================
# Tenancy Exceptions
# ============================================================================


class TenantNotFoundError(PortalError):
    """Raised when the backend has no tenant for the derived key"""

    def __init__(self, tenant_key: str):
        super().__init__(
            message=f"Tenant '{tenant_key}' not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"tenant_key": tenant_key},
        )
        self.tenant_key = tenant_key


class TenantResolutionError(PortalError):
    """Raised when tenant configuration could not be loaded for another reason"""

    def __init__(self, tenant_key: str, reason: str):
        super().__init__(
            message=reason,
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"tenant_key": tenant_key},
        )
        self.tenant_key = tenant_key
        self.reason = reason
