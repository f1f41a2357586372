# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Query gateway: the operations offered to the presentation layer.

Two access policies share one store. The public path answers protocol
lookups and never distinguishes malformed from unknown protocols. The
administrative path assumes the caller was authorized upstream and exposes
full detail, except that anonymous submitters stay anonymous for everyone.
"""

import logging
from typing import Any, Dict, Optional, Union
from opentelemetry import trace

from ..domain import manifestacoes as manifestacao_domain
from ..domain.errors import ConflictException, NotFoundException
from ..domain.ledger import ResponseLedger
from ..domain.lifecycle import LifecycleEngine, coerce_status
from ..domain.protocol import normalize_protocolo
from ..models.requests import ManifestacaoDraft, ManifestacaoFilters, PaginationParams
from .audit import AuditService
from .store import ManifestacaoStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class QueryGateway:
    """Public and administrative entry points over the manifestation core."""

    def __init__(
        self,
        store: ManifestacaoStore,
        lifecycle: LifecycleEngine,
        ledger: ResponseLedger,
        audit_service=None
    ):
        self.store = store
        self.lifecycle = lifecycle
        self.ledger = ledger
        self.audit_service = audit_service

    # Public path

    def submit_manifestacao(self, draft: Union[ManifestacaoDraft, Dict[str, Any]]) -> Dict[str, str]:
        """Create a manifestation and return its identifiers."""
        manifestacao = self.store.create(draft)
        return {"id": manifestacao.id, "protocolo": manifestacao.protocolo}

    def lookup_by_protocolo(self, protocolo: Any) -> Dict[str, Any]:
        """
        Public lookup by exact protocol.

        Malformed and unknown protocols raise the same ``NotFoundException``.
        """
        with tracer.start_as_current_span("gateway.lookup_by_protocolo") as span:
            normalized = normalize_protocolo(protocolo)
            span.set_attribute("lookup.well_formed", normalized is not None)
            if normalized is None:
                raise NotFoundException()

            manifestacao = self.store.get_by_protocolo(normalized)
            return manifestacao_domain.to_public_view(manifestacao)

    get_public_manifestacao = lookup_by_protocolo

    # Administrative path

    def get_manifestacao_detail(self, manifestacao_id: str) -> Dict[str, Any]:
        """Full administrative detail of one manifestation."""
        manifestacao = self.store.get_by_id(manifestacao_id)
        return manifestacao_domain.to_detail_view(manifestacao)

    def list_manifestacoes(
        self,
        filters: Optional[ManifestacaoFilters] = None,
        pagination: Optional[PaginationParams] = None
    ) -> Dict[str, Any]:
        """Page of manifestation summaries."""
        result = self.store.list(filters, pagination)
        return {
            "items": [manifestacao_domain.to_summary(item) for item in result.items],
            "total": result.total,
            "page": result.page,
            "pageSize": result.page_size,
            "totalPages": result.total_pages,
            "snapshot": result.snapshot.isoformat()
        }

    def update_manifestacao_status(
        self,
        manifestacao_id: str,
        target_status: str,
        expected_status: Optional[str] = None,
        actor: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Apply a status transition.

        ``expected_status`` is the status the caller last saw; when it no
        longer matches, the request is rejected as a conflict instead of being
        re-validated against a state the staff member never looked at.
        """
        with tracer.start_as_current_span("gateway.update_status") as span:
            target = coerce_status(target_status)
            span.set_attributes({"manifestacao.id": str(manifestacao_id), "manifestacao.status.target": target})

            manifestacao = self.store.get_by_id(manifestacao_id)
            if expected_status is not None and coerce_status(expected_status) != manifestacao.status:
                logger.warning(
                    "Stale status update rejected",
                    extra={
                        "manifestacao_id": manifestacao.id,
                        "expected_status": expected_status,
                        "current_status": manifestacao.status
                    }
                )
                raise ConflictException(
                    f"O status atual é {manifestacao.status}, não {expected_status}"
                )

            updated = self.lifecycle.transition(manifestacao, target, actor=actor)
            return manifestacao_domain.to_detail_view(updated)

    def add_manifestacao_response(
        self,
        manifestacao_id: str,
        texto: Optional[str],
        gestor_nome: Optional[str] = None,
        target_status: Optional[str] = None,
        actor: Optional[str] = None
    ) -> Dict[str, Any]:
        """Append a staff response, optionally with an atomic status change."""
        updated = self.ledger.append_response(
            manifestacao_id,
            texto,
            gestor_nome=gestor_nome,
            target_status=target_status,
            actor=actor
        )
        return manifestacao_domain.to_detail_view(updated)

    def get_manifestacao_history(self, manifestacao_id: str) -> Dict[str, Any]:
        """Audit history of one manifestation."""
        manifestacao = self.store.get_by_id(manifestacao_id)
        entries = self.audit_service.get_entity_history(manifestacao.id) if self.audit_service else []
        return {"id": manifestacao.id, "protocolo": manifestacao.protocolo, "items": entries}

    def enumerations(self) -> Dict[str, Any]:
        """Status, type and attachment vocabularies plus the transition table."""
        return manifestacao_domain.enumerations()


def build_gateway(repository, clock=None, max_protocol_attempts: int = 3) -> QueryGateway:
    """Wire store, lifecycle engine, ledger and audit over one repository."""
    kwargs = {"clock": clock} if clock else {}
    audit_service = AuditService(repository, **kwargs)
    store = ManifestacaoStore(
        repository,
        audit_service=audit_service,
        max_protocol_attempts=max_protocol_attempts,
        **kwargs
    )
    lifecycle = LifecycleEngine(repository, audit_service=audit_service, **kwargs)
    ledger = ResponseLedger(repository, audit_service=audit_service, **kwargs)
    return QueryGateway(store, lifecycle, ledger, audit_service)
