# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Typed failure outcomes of the manifestation core.

Every failure carries a stable ``error_type`` kind, a human message and the
HTTP status the presentation layer should map it to.
"""

from typing import Any, Dict, List, Optional


class OuvidoriaException(Exception):
    """Base class for manifestation core exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation (kind + message)."""
        return {"kind": self.error_type, "message": self.message}


class ValidationException(OuvidoriaException):
    """Malformed or missing required input; nothing was applied."""

    def __init__(self, message: str, validation_errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.validation_errors:
            data["errors"] = self.validation_errors
        return data


class NotFoundException(OuvidoriaException):
    """Unknown manifestation id or protocol."""

    def __init__(self, message: str = "Manifestação não encontrada"):
        super().__init__(message, 404, "resource-not-found")


class InvalidTransitionException(OuvidoriaException):
    """Requested status edge is absent from the transition table."""

    def __init__(self, current_status: str, target_status: str, message: Optional[str] = None):
        super().__init__(
            message or f"Transição de status inválida: {current_status} -> {target_status}",
            422,
            "invalid-transition"
        )
        self.current_status = current_status
        self.target_status = target_status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["currentStatus"] = self.current_status
        data["targetStatus"] = self.target_status
        return data


class ConflictException(OuvidoriaException):
    """A concurrent write won the race; retry against fresh state."""

    def __init__(self, message: str = "A manifestação foi alterada por outra operação"):
        super().__init__(message, 409, "resource-conflict")


def from_pydantic_error(error, message: str = "Dados inválidos") -> ValidationException:
    """Convert a pydantic ``ValidationError`` to a ``ValidationException``."""
    validation_errors = []
    for err in error.errors():
        validation_errors.append({
            "field": ".".join(str(loc) for loc in err.get("loc", ())) or "__root__",
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type", "value_error"),
        })
    return ValidationException(message, validation_errors)
