# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request utilities for extracting and processing request data.
"""

from flask import request
from typing import Dict, Any, Optional
import logging

from ..domain.errors import ValidationException
from ..models.requests import ManifestacaoFilters, PaginationParams

logger = logging.getLogger(__name__)

FILTER_PARAMS = ('status', 'tipo', 'orgao')


class RequestParser:
    """Utility for parsing and extracting request data."""

    @staticmethod
    def get_pagination_params(
        default_page: int = 1,
        default_page_size: int = 20,
        max_page_size: int = 100
    ) -> PaginationParams:
        """
        Extract pagination parameters from request.

        Page numbers below 1 and oversized pages are clamped; a malformed
        snapshot is rejected because silently dropping it would restart
        the listing.
        """
        try:
            page = max(1, int(request.args.get('page', default_page)))
        except (ValueError, TypeError):
            page = default_page

        raw_page_size = request.args.get('page_size', request.args.get('pageSize', default_page_size))
        try:
            page_size = max(1, min(int(raw_page_size), max_page_size))
        except (ValueError, TypeError):
            page_size = default_page_size

        return PaginationParams(
            page=page,
            page_size=page_size,
            snapshot=request.args.get('snapshot') or None
        )

    @staticmethod
    def get_filters() -> ManifestacaoFilters:
        """Extract listing filters; unknown status or tipo codes are a 400."""
        return ManifestacaoFilters.model_validate({
            name: request.args.get(name) for name in FILTER_PARAMS
        })

    @staticmethod
    def get_json_body() -> Dict[str, Any]:
        """Return the JSON object body or raise ``ValidationException``."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationException("O corpo da requisição deve ser um objeto JSON")
        return data

    @staticmethod
    def get_actor() -> Optional[str]:
        """Staff identity forwarded by the authenticating proxy."""
        actor = request.headers.get('X-Actor', '').strip()
        return actor or None


def get_pagination_params(**kwargs) -> PaginationParams:
    return RequestParser.get_pagination_params(**kwargs)


def get_filters() -> ManifestacaoFilters:
    return RequestParser.get_filters()


def get_json_body() -> Dict[str, Any]:
    return RequestParser.get_json_body()


def get_actor() -> Optional[str]:
    return RequestParser.get_actor()
