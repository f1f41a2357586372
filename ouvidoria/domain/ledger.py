# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Append-only staff response ledger.

Responses are never edited or removed. Appending one refreshes the parent's
``updatedAt`` but leaves ``status`` alone unless the caller explicitly asks
for a status change in the same write.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from opentelemetry import trace

from ..models.base import utcnow
from ..models.entities import Manifestacao, Resposta
from .errors import NotFoundException, ValidationException
from .lifecycle import coerce_status, stale_write_error, validate_transition

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ResponseLedger:
    """Appends staff responses to manifestations."""

    def __init__(self, repository, audit_service=None, clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.audit_service = audit_service
        self.clock = clock

    def append_response(
        self,
        manifestacao_id: str,
        texto: Optional[str],
        gestor_nome: Optional[str] = None,
        target_status: Optional[str] = None,
        actor: Optional[str] = None
    ) -> Manifestacao:
        """
        Append a response, optionally moving the status in the same write.

        Args:
            manifestacao_id: Internal manifestation id
            texto: Response text, required after trimming
            gestor_nome: Optional staff display name
            target_status: Status to apply atomically with the append
            actor: Staff member attributed in the audit trail

        Returns:
            The manifestation as stored after the append

        Raises:
            ValidationException: empty text
            NotFoundException: unknown manifestation
            InvalidTransitionException: ``target_status`` edge not allowed
            ConflictException: a concurrent write changed the manifestation
                while the status change was being applied
        """
        with tracer.start_as_current_span("ledger.append_response") as span:
            texto = (texto or "").strip()
            if not texto:
                raise ValidationException(
                    "O texto da resposta é obrigatório",
                    [{"field": "texto", "message": "Response text cannot be empty", "type": "missing"}]
                )

            gestor_nome = gestor_nome.strip() if gestor_nome and gestor_nome.strip() else None
            now = self.clock()
            resposta = Resposta(texto=texto, gestor_nome=gestor_nome, created_at=now)

            span.set_attributes({
                "manifestacao.id": manifestacao_id,
                "resposta.id": resposta.id,
                "resposta.with_status": target_status is not None
            })

            if target_status is None:
                document = self.repository.push_resposta(manifestacao_id, resposta.to_document(), now)
                if document is None:
                    raise NotFoundException()
                before_status = None
            else:
                document, before_status = self._append_with_transition(
                    manifestacao_id, resposta, coerce_status(target_status), now
                )

            updated = Manifestacao.from_document(document)

            logger.info(
                "Response appended to manifestation",
                extra={
                    "manifestacao_id": updated.id,
                    "protocolo": updated.protocolo,
                    "resposta_id": resposta.id,
                    "total_respostas": len(updated.respostas),
                    "status": updated.status
                }
            )

            if self.audit_service:
                after = {"respostaId": resposta.id, "totalRespostas": len(updated.respostas)}
                before = None
                if before_status is not None:
                    before = {"status": before_status}
                    after["status"] = updated.status
                self.audit_service.log_committed_action(
                    updated.id, "add_response", actor=actor or gestor_nome, before=before, after=after
                )

            return updated

    def _append_with_transition(self, manifestacao_id: str, resposta: Resposta, target: str, now: datetime):
        """Push the response and set the status in one version-checked write."""
        current_document = self.repository.find_by_id(manifestacao_id)
        if current_document is None:
            raise NotFoundException()
        current = Manifestacao.from_document(current_document)

        validate_transition(current.status, target)

        document = self.repository.compare_and_set(
            current.id,
            current.version,
            {"status": target},
            now,
            push_resposta=resposta.to_document()
        )
        if document is None:
            raise stale_write_error(self.repository, current.id)
        return document, current.status
