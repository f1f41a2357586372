# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Maps domain failures, request validation errors and HTTP errors to
RFC 7807 problem documents.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from pydantic import ValidationError
from typing import Dict, Any, Tuple
from opentelemetry import trace
import logging

from ..domain.errors import (
    OuvidoriaException,
    ValidationException,
    NotFoundException,
    InvalidTransitionException,
    ConflictException,
    from_pydantic_error
)
from ..services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

HTTP_ERROR_TYPES = {
    400: ("bad-request", "Bad Request"),
    404: ("resource-not-found", "Resource Not Found"),
    405: ("method-not-allowed", "Method Not Allowed"),
    409: ("resource-conflict", "Resource Conflict"),
    415: ("unsupported-media-type", "Unsupported Media Type"),
    422: ("validation-error", "Validation Error"),
    429: ("rate-limit-exceeded", "Rate Limit Exceeded"),
}


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(OuvidoriaException)
        def handle_domain_exception(error: OuvidoriaException):
            return self._respond(*self.handle_domain_error(error))

        @self.app.errorhandler(ValidationError)
        def handle_pydantic_error(error: ValidationError):
            return self._respond(*self.handle_domain_error(from_pydantic_error(error)))

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            if error.code and error.code >= 500:
                return self._respond(*self.handle_server_error(error))
            return self._respond(*self.handle_client_error(error))

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self._respond(*self.handle_unexpected_error(error))

    @staticmethod
    def _respond(body: Dict[str, Any], status_code: int):
        response = jsonify(body)
        response.status_code = status_code
        response.mimetype = "application/problem+json"
        return response

    def handle_domain_error(self, error: OuvidoriaException) -> Tuple[Dict[str, Any], int]:
        """
        Handle typed manifestation failures.

        Args:
            error: Domain exception raised by the gateway

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.domain_error") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.warning(
                f"Domain error: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            if isinstance(error, ValidationException):
                body = self.hal_formatter.format_validation_error(
                    error.message,
                    request.path,
                    error.validation_errors
                )
            elif isinstance(error, NotFoundException):
                body = self.hal_formatter.format_not_found_error(error.message, request.path)
            elif isinstance(error, InvalidTransitionException):
                body = self.hal_formatter.format_invalid_transition_error(
                    error.message,
                    request.path,
                    error.current_status,
                    error.target_status
                )
            elif isinstance(error, ConflictException):
                body = self.hal_formatter.format_conflict_error(error.message, request.path)
            else:
                body = self.hal_formatter.builder.build_error_response(
                    error.error_type,
                    "Application Error",
                    error.status_code,
                    error.message,
                    request.path
                )

            return body, error.status_code

    def handle_client_error(self, error: HTTPException) -> Tuple[Dict[str, Any], int]:
        """Handle werkzeug 4xx errors such as unknown routes."""
        error_type, title = HTTP_ERROR_TYPES.get(error.code, ("client-error", error.name))

        with tracer.start_as_current_span("error_handler.client_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title

            logger.warning(
                f"Client error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": error.code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method,
                    "user_agent": request.headers.get('User-Agent'),
                    "ip_address": request.remote_addr
                }
            )

            body = self.hal_formatter.builder.build_error_response(
                error_type,
                title,
                error.code,
                detail,
                request.path
            )
            return body, error.code

    def handle_server_error(self, error: HTTPException) -> Tuple[Dict[str, Any], int]:
        """Handle werkzeug 5xx errors."""
        with tracer.start_as_current_span("error_handler.server_error") as span:
            span.set_attributes({
                "error.type": "server-error",
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.error(
                f"Server error: {error.name}",
                extra={
                    "status_code": error.code,
                    "path": request.path,
                    "method": request.method
                }
            )

            detail = "An internal server error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production' and error.description:
                detail = str(error.description)

            body = self.hal_formatter.format_server_error(detail, request.path)
            body['status'] = error.code
            return body, error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                },
                exc_info=error
            )

            # Internal details stay out of production responses
            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            body = self.hal_formatter.format_server_error(detail, request.path)
            return body, 500
