# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Manifestation store: creation, lookups and snapshot-paginated listing.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ..domain import manifestacoes as manifestacao_domain
from ..domain.errors import ConflictException, NotFoundException
from ..domain.protocol import ProtocolGenerator
from ..models.base import truncate_to_millis, utcnow
from ..models.entities import Manifestacao
from ..models.requests import ManifestacaoDraft, ManifestacaoFilters, PaginationParams

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_PROTOCOL_ATTEMPTS = 3


@dataclass
class ManifestacaoPageResult:
    """Page of manifestations over a listing snapshot."""
    items: List[Manifestacao]
    total: int
    page: int
    page_size: int
    snapshot: datetime

    @property
    def total_pages(self) -> int:
        return manifestacao_domain.total_pages(self.total, self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class ManifestacaoStore:
    """Durable record of manifestations enforcing entity invariants."""

    def __init__(
        self,
        repository,
        protocol_generator: Optional[ProtocolGenerator] = None,
        audit_service=None,
        clock: Callable[[], datetime] = utcnow,
        max_protocol_attempts: int = DEFAULT_PROTOCOL_ATTEMPTS
    ):
        self.repository = repository
        self.protocol_generator = protocol_generator or ProtocolGenerator(repository)
        self.audit_service = audit_service
        self.clock = clock
        self.max_protocol_attempts = max(1, max_protocol_attempts)

    def create(self, draft: Union[ManifestacaoDraft, Dict[str, Any]]) -> Manifestacao:
        """
        Validate ``draft`` and persist a new manifestation.

        Protocol allocation is retried on conflict; a value that lost a race
        is never reused.

        Raises:
            ValidationException: missing or malformed draft fields
            ConflictException: protocol allocation kept conflicting
        """
        with tracer.start_as_current_span("store.create") as span:
            parsed = manifestacao_domain.parse_draft(draft)
            span.set_attributes({
                "manifestacao.tipo": parsed.tipo,
                "manifestacao.anonimo": parsed.anonimo,
                "manifestacao.anexos_count": len(parsed.anexos)
            })

            last_error: Optional[ConflictException] = None
            for attempt in range(1, self.max_protocol_attempts + 1):
                now = truncate_to_millis(self.clock())
                try:
                    protocolo = self.protocol_generator.issue(now)
                    manifestacao = manifestacao_domain.build_manifestacao(parsed, protocolo, now)
                    self.repository.insert(manifestacao.to_document())
                except ConflictException as e:
                    last_error = e
                    logger.warning(
                        "Protocol allocation conflict",
                        extra={"attempt": attempt, "max_attempts": self.max_protocol_attempts}
                    )
                    continue

                span.set_attributes({
                    "manifestacao.id": manifestacao.id,
                    "manifestacao.protocolo": manifestacao.protocolo,
                    "protocol.attempts": attempt
                })
                logger.info(
                    "Manifestation created",
                    extra={
                        "manifestacao_id": manifestacao.id,
                        "protocolo": manifestacao.protocolo,
                        "tipo": manifestacao.tipo,
                        "orgao": manifestacao.orgao,
                        "anonimo": manifestacao.anonimo
                    }
                )
                if self.audit_service:
                    self.audit_service.log_committed_action(
                        manifestacao.id,
                        "create",
                        after={"status": manifestacao.status, "protocolo": manifestacao.protocolo}
                    )
                return manifestacao

            span.set_status(Status(StatusCode.ERROR, "protocol allocation exhausted"))
            logger.error(
                "Protocol allocation failed after retries",
                extra={"max_attempts": self.max_protocol_attempts}
            )
            raise last_error or ConflictException("Conflito ao alocar número de protocolo")

    def get_by_id(self, manifestacao_id: str) -> Manifestacao:
        """Fetch by internal id or raise ``NotFoundException``."""
        with tracer.start_as_current_span("store.get_by_id") as span:
            span.set_attribute("manifestacao.id", str(manifestacao_id))
            document = self.repository.find_by_id(manifestacao_id)
            if document is None:
                logger.debug(f"Manifestation {manifestacao_id} not found")
                raise NotFoundException()
            return Manifestacao.from_document(document)

    def get_by_protocolo(self, protocolo: str) -> Manifestacao:
        """Fetch by exact, case-sensitive protocol or raise ``NotFoundException``."""
        with tracer.start_as_current_span("store.get_by_protocolo"):
            document = self.repository.find_by_protocolo(protocolo)
            if document is None:
                raise NotFoundException()
            return Manifestacao.from_document(document)

    def list(
        self,
        filters: Optional[ManifestacaoFilters] = None,
        pagination: Optional[PaginationParams] = None
    ) -> ManifestacaoPageResult:
        """
        List manifestations newest first.

        The first page fixes a ``snapshot``; passing it back on later pages
        keeps offsets stable while new manifestations keep arriving.
        """
        with tracer.start_as_current_span("store.list") as span:
            pagination = pagination or PaginationParams()
            snapshot = pagination.snapshot or truncate_to_millis(self.clock())
            query = manifestacao_domain.build_filter_query(filters)
            skip = (pagination.page - 1) * pagination.page_size

            documents, total = self.repository.find_page(query, snapshot, skip, pagination.page_size)

            items = [Manifestacao.from_document(document) for document in documents]
            span.set_attributes({
                "pagination.page": pagination.page,
                "pagination.page_size": pagination.page_size,
                "db.result_count": len(items),
                "db.total_count": total
            })
            return ManifestacaoPageResult(
                items=items,
                total=total,
                page=pagination.page,
                page_size=pagination.page_size,
                snapshot=snapshot
            )
