# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Audit service for manifestation mutations with OpenTelemetry correlation.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from opentelemetry import trace

from ..models.base import utcnow
from ..models.entities import AuditLog

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class AuditService:
    """Records who changed what on a manifestation."""

    def __init__(self, repository, clock: Callable[[], datetime] = utcnow):
        """Initialize audit service with a repository dependency."""
        self.repository = repository
        self.clock = clock
        logger.info("Audit service initialized")

    def log_action(
        self,
        entity_id: str,
        action: str,
        actor: Optional[str] = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log an audit trail entry with trace correlation.

        Args:
            entity_id: Manifestation id
            action: ``create``, ``status_change`` or ``add_response``
            actor: Staff member performing the action, when known
            before: State before the action (optional)
            after: State after the action (optional)

        Returns:
            str: ID of the created audit log entry
        """
        with tracer.start_as_current_span("audit.log_action") as span:
            span_context = span.get_span_context()

            try:
                entry = AuditLog(
                    timestamp=self.clock(),
                    actor=actor,
                    entity_id=entity_id,
                    action=action,
                    before=before,
                    after=after
                )
                if span_context.is_valid:
                    entry.trace_id = format(span_context.trace_id, "032x")
                    entry.span_id = format(span_context.span_id, "016x")

                span.set_attributes({
                    "audit.entity": entry.entity,
                    "audit.action": action,
                    "audit.entity_id": entity_id
                })

                document = entry.to_document()
                document["_id"] = document.pop("id")
                self.repository.record_audit(document)

                logger.info(
                    f"Audit log created: {action} on manifestacao",
                    extra={
                        "audit_id": entry.id,
                        "action": action,
                        "entity_id": entity_id,
                        "actor": actor,
                        "trace_id": entry.trace_id
                    }
                )
                return entry.id

            except Exception as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.error(
                    "Failed to create audit trail entry",
                    extra={
                        "entity_id": entity_id,
                        "action": action,
                        "actor": actor,
                        "error": str(e)
                    },
                    exc_info=True
                )
                raise

    def log_committed_action(
        self,
        entity_id: str,
        action: str,
        actor: Optional[str] = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None
    ) -> Optional[str]:
        """
        Audit a change that is already committed.

        The manifestation write cannot be undone at this point, so a failing
        audit store is logged and the caller still gets the committed result.
        Returns the audit entry id, or None when the entry was lost.
        """
        try:
            return self.log_action(entity_id, action, actor=actor, before=before, after=after)
        except Exception:
            logger.error(
                "Audit entry lost for committed change",
                extra={"entity_id": entity_id, "action": action, "actor": actor},
                exc_info=True
            )
            return None

    def get_entity_history(self, entity_id: str) -> List[Dict[str, Any]]:
        """Audit entries of one manifestation, oldest first, JSON-ready."""
        with tracer.start_as_current_span("audit.get_entity_history") as span:
            span.set_attribute("audit.entity_id", entity_id)
            history = []
            for document in self.repository.find_audit(entity_id):
                data = dict(document)
                data["id"] = str(data.pop("_id", data.get("id")))
                history.append(AuditLog.model_validate(data).model_dump(by_alias=True, mode="json"))
            return history
