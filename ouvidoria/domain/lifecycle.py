# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Manifestation status state machine.

The transition table below is the single authority on which status edges
exist. ``ARQUIVADA`` is terminal and no edge moves backwards.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, FrozenSet, List, Optional
from opentelemetry import trace

from ..models.base import utcnow
from ..models.entities import Manifestacao
from ..models.enums import StatusManifestacao
from .errors import (
    ConflictException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

S = StatusManifestacao

TRANSITIONS: Dict[StatusManifestacao, FrozenSet[StatusManifestacao]] = {
    S.RECEBIDA: frozenset({S.EM_ANALISE, S.ARQUIVADA}),
    S.EM_ANALISE: frozenset({S.RESPONDIDA, S.ARQUIVADA}),
    S.RESPONDIDA: frozenset({S.ARQUIVADA}),
    S.ARQUIVADA: frozenset(),
}

INITIAL_STATUS = S.RECEBIDA
TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)


def coerce_status(value: str) -> str:
    """Validate a status code supplied by a caller."""
    try:
        return StatusManifestacao(value).value
    except ValueError:
        raise ValidationException(
            f"Status desconhecido: {value}",
            [{"field": "status", "message": "Unknown status", "type": "enum"}]
        )


def allowed_transitions(status: str) -> List[str]:
    """Targets reachable from ``status``, in declaration order."""
    targets = TRANSITIONS.get(StatusManifestacao(status), frozenset())
    return [member.value for member in StatusManifestacao if member in targets]


def can_transition(current: str, target: str) -> bool:
    """Check whether the edge ``current -> target`` exists."""
    try:
        current_status = StatusManifestacao(current)
        target_status = StatusManifestacao(target)
    except ValueError:
        return False
    return target_status in TRANSITIONS[current_status]


def validate_transition(current: str, target: str) -> None:
    """
    Reject same-state requests and edges missing from the table.

    Raises:
        InvalidTransitionException: when the edge is not allowed.
    """
    if current == target:
        raise InvalidTransitionException(
            current, target, f"A manifestação já está com status {target}"
        )
    if not can_transition(current, target):
        raise InvalidTransitionException(current, target)


def transition_table() -> Dict[str, List[str]]:
    """Serializable view of the transition table."""
    return {status.value: allowed_transitions(status.value) for status in StatusManifestacao}


def stale_write_error(repository, manifestacao_id: str):
    """Tell a lost compare-and-set race apart from a vanished document."""
    if repository.find_by_id(manifestacao_id) is None:
        return NotFoundException()
    logger.warning(
        "Concurrent manifestation update rejected",
        extra={"manifestacao_id": manifestacao_id}
    )
    return ConflictException()


class LifecycleEngine:
    """Validates and applies status transitions with optimistic concurrency."""

    def __init__(self, repository, audit_service=None, clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.audit_service = audit_service
        self.clock = clock

    def transition(
        self,
        manifestacao: Manifestacao,
        target_status: str,
        actor: Optional[str] = None
    ) -> Manifestacao:
        """
        Move ``manifestacao`` to ``target_status``.

        The write only succeeds if the stored version still matches the one
        ``manifestacao`` was read at; otherwise the losing caller gets a
        ``ConflictException`` and must re-read before trying again.
        """
        with tracer.start_as_current_span("lifecycle.transition") as span:
            target = coerce_status(target_status)
            span.set_attributes({
                "manifestacao.id": manifestacao.id,
                "manifestacao.status.current": manifestacao.status,
                "manifestacao.status.target": target,
                "manifestacao.version": manifestacao.version
            })

            validate_transition(manifestacao.status, target)

            document = self.repository.compare_and_set(
                manifestacao.id,
                manifestacao.version,
                {"status": target},
                self.clock()
            )
            if document is None:
                raise stale_write_error(self.repository, manifestacao.id)

            updated = Manifestacao.from_document(document)

            logger.info(
                "Manifestation status changed",
                extra={
                    "manifestacao_id": updated.id,
                    "protocolo": updated.protocolo,
                    "from_status": manifestacao.status,
                    "to_status": updated.status,
                    "actor": actor
                }
            )

            if self.audit_service:
                self.audit_service.log_committed_action(
                    updated.id,
                    "status_change",
                    actor=actor,
                    before={"status": manifestacao.status, "version": manifestacao.version},
                    after={"status": updated.status, "version": updated.version}
                )

            return updated
