# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Implements HATEOAS responses whose affordance links follow the
manifestation lifecycle.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin, urlencode

from ..domain.lifecycle import allowed_transitions
from ..models.enums import StatusManifestacao
from ..models.responses import HalLink

ADMIN_COLLECTION_PATH = "/api/admin/manifestacoes"
PUBLIC_COLLECTION_PATH = "/api/manifestacoes"
PROBLEM_BASE_URL = "https://api.ouvidoria.gov.br/problems"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")

    def build_collection_link(self, collection_path: str) -> HalLink:
        """Build link to parent collection."""
        return self.build_link(collection_path, title="Collection")


class PaginationLinkBuilder:
    """Builder for pagination links in HAL collections."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def _page_link(self, base_path: str, params: Dict[str, Any], page: int, page_size: int, title: str) -> HalLink:
        query = urlencode({**params, 'page': page, 'page_size': page_size})
        return self.link_builder.build_link(f"{base_path}?{query}", title=title)

    def build_pagination_links(
        self,
        base_path: str,
        current_page: int,
        total_pages: int,
        page_size: int,
        query_params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, HalLink]:
        """Build pagination links for a collection."""
        links = {}
        params = {k: v for k, v in (query_params or {}).items() if v is not None}

        links['self'] = self._page_link(base_path, params, current_page, page_size, "Current page")

        if current_page > 1:
            links['first'] = self._page_link(base_path, params, 1, page_size, "First page")
            links['prev'] = self._page_link(base_path, params, current_page - 1, page_size, "Previous page")

        if current_page < total_pages:
            links['next'] = self._page_link(base_path, params, current_page + 1, page_size, "Next page")
            links['last'] = self._page_link(base_path, params, total_pages, page_size, "Last page")

        return links


class AffordanceLinkBuilder:
    """Builder for conditional affordance links based on lifecycle state."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def build_manifestacao_affordances(self, manifestacao_id: str, status: str) -> Dict[str, HalLink]:
        """Links for the actions available from the current status."""
        links = {}
        base_path = f"{ADMIN_COLLECTION_PATH}/{manifestacao_id}"

        links['self'] = self.link_builder.build_self_link(base_path)
        links['collection'] = self.link_builder.build_collection_link(ADMIN_COLLECTION_PATH)
        links['history'] = self.link_builder.build_link(f"{base_path}/historico", title="History")

        for target in allowed_transitions(status):
            links[f"transition:{target}"] = self.link_builder.build_link(
                f"{base_path}/status",
                method="PATCH",
                content_type="application/json",
                title=f"Mover para {StatusManifestacao(target).label}"
            )

        links['respond'] = self.link_builder.build_link(
            f"{base_path}/respostas",
            method="POST",
            content_type="application/json",
            title="Responder"
        )

        return links

    def build_public_affordances(self, protocolo: str) -> Dict[str, HalLink]:
        """Links for a public protocol lookup."""
        return {
            'self': self.link_builder.build_self_link(f"{PUBLIC_COLLECTION_PATH}/protocolo/{protocolo}")
        }


class HalResponseBuilder:
    """Main HAL response builder."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)
        self.pagination_builder = PaginationLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)

    @staticmethod
    def _dump_links(links: Dict[str, HalLink]) -> Dict[str, Dict[str, Any]]:
        return {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}

    def build_resource_response(self, data: Dict[str, Any], links: Dict[str, HalLink]) -> Dict[str, Any]:
        """Attach ``_links`` to a resource representation."""
        response = dict(data)
        response['_links'] = self._dump_links(links)
        return response

    def build_collection_response(
        self,
        items: List[Dict[str, Any]],
        total: int,
        page: int,
        page_size: int,
        total_pages: int,
        collection_path: str,
        query_params: Optional[Dict[str, Any]] = None,
        extra: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build a HAL collection response with pagination links."""
        pagination_links = self.pagination_builder.build_pagination_links(
            collection_path,
            page,
            total_pages,
            page_size,
            query_params
        )

        response = {
            'total': total,
            'page': page,
            'pageSize': page_size,
            'totalPages': total_pages,
            '_links': self._dump_links(pagination_links),
            '_embedded': {
                'items': items
            }
        }
        if extra:
            response.update(extra)

        return response

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        extra: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{PROBLEM_BASE_URL}/{error_type}",
            'kind': error_type,
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors
        if extra:
            error_response.update(extra)

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )
        elif error_type == "invalid-transition":
            links['metadata'] = self.link_builder.build_link(
                f"{PUBLIC_COLLECTION_PATH}/metadados",
                title="Transition table"
            )

        error_response['_links'] = self._dump_links(links)
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_manifestacao(self, view: Dict[str, Any]) -> Dict[str, Any]:
        """Format an administrative manifestation view with lifecycle links."""
        links = self.builder.affordance_builder.build_manifestacao_affordances(view['id'], view['status'])
        return self.builder.build_resource_response(view, links)

    def format_public_manifestacao(self, view: Dict[str, Any]) -> Dict[str, Any]:
        """Format a public protocol lookup result."""
        links = self.builder.affordance_builder.build_public_affordances(view['protocolo'])
        return self.builder.build_resource_response(view, links)

    def format_summary(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        links = {
            'self': self.builder.link_builder.build_self_link(f"{ADMIN_COLLECTION_PATH}/{summary['id']}")
        }
        return self.builder.build_resource_response(summary, links)

    def format_manifestacao_collection(
        self,
        page: Dict[str, Any],
        filters: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format a page of manifestation summaries with pagination links."""
        query_params = dict(filters or {})
        query_params['snapshot'] = page['snapshot']
        return self.builder.build_collection_response(
            [self.format_summary(item) for item in page['items']],
            page['total'],
            page['page'],
            page['pageSize'],
            page['totalPages'],
            ADMIN_COLLECTION_PATH,
            query_params,
            extra={'snapshot': page['snapshot']}
        )

    def format_history(self, history: Dict[str, Any]) -> Dict[str, Any]:
        links = {
            'self': self.builder.link_builder.build_self_link(f"{ADMIN_COLLECTION_PATH}/{history['id']}/historico"),
            'manifestacao': self.builder.link_builder.build_link(
                f"{ADMIN_COLLECTION_PATH}/{history['id']}", title="Manifestação"
            )
        }
        return self.builder.build_resource_response(history, links)

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error", "Validation Error", 400, detail, instance, validation_errors
        )

    def format_not_found_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a not found error response."""
        return self.builder.build_error_response(
            "resource-not-found", "Resource Not Found", 404, detail, instance
        )

    def format_invalid_transition_error(
        self,
        detail: str,
        instance: str,
        current_status: str,
        target_status: str
    ) -> Dict[str, Any]:
        """Format an illegal status edge response."""
        return self.builder.build_error_response(
            "invalid-transition",
            "Invalid Status Transition",
            422,
            detail,
            instance,
            extra={
                'currentStatus': current_status,
                'targetStatus': target_status,
                'allowedTransitions': allowed_transitions(current_status)
            }
        )

    def format_conflict_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a conflict error response."""
        return self.builder.build_error_response(
            "resource-conflict", "Resource Conflict", 409, detail, instance
        )

    def format_rate_limit_error(self, detail: str, instance: str) -> Dict[str, Any]:
        return self.builder.build_error_response(
            "rate-limit-exceeded", "Rate Limit Exceeded", 429, detail, instance
        )

    def format_server_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error", "Internal Server Error", 500, detail, instance
        )


# Convenience function for creating HAL formatter
def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
