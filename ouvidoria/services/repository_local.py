# SPDX-License-Identifier: Apache-2.0

"""
In-memory manifestation repository for local development and tests.

Implements the same contract as the MongoDB adapter behind a single
re-entrant lock: counters increment atomically, protocol uniqueness is
enforced by a secondary index, and readers only ever receive copies of
committed documents.
"""

import copy
import logging
from datetime import datetime
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple

from ..domain.errors import ConflictException
from ..domain.manifestacoes import matches_query
from .repository import ManifestacaoRepository, counter_key

logger = logging.getLogger(__name__)


class InMemoryManifestacaoRepository(ManifestacaoRepository):
    """Thread-safe in-memory manifestation repository."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._protocolo_index: Dict[str, str] = {}
        self._counters: Dict[str, int] = {}
        self._audit: List[Dict[str, Any]] = []
        logger.info("In-memory manifestation repository initialized")

    def next_sequence(self, year: int) -> int:
        with self._lock:
            key = counter_key(year)
            self._counters[key] = self._counters.get(key, 0) + 1
            return self._counters[key]

    def insert(self, document: Dict[str, Any]) -> None:
        with self._lock:
            if document["_id"] in self._documents:
                raise ConflictException("Identificador já utilizado")
            if document["protocolo"] in self._protocolo_index:
                raise ConflictException("Protocolo já utilizado")
            self._documents[document["_id"]] = copy.deepcopy(document)
            self._protocolo_index[document["protocolo"]] = document["_id"]

    def find_by_id(self, manifestacao_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._documents.get(manifestacao_id)
            return copy.deepcopy(document) if document is not None else None

    def find_by_protocolo(self, protocolo: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            manifestacao_id = self._protocolo_index.get(protocolo)
            if manifestacao_id is None:
                return None
            return copy.deepcopy(self._documents[manifestacao_id])

    def find_page(
        self,
        query: Dict[str, Any],
        snapshot: datetime,
        skip: int,
        limit: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        with self._lock:
            matching = [
                document for document in self._documents.values()
                if document["createdAt"] <= snapshot and matches_query(document, query)
            ]
            matching.sort(key=lambda d: (d["createdAt"], d["_id"]), reverse=True)
            page = matching[skip:skip + limit]
            return copy.deepcopy(page), len(matching)

    def _apply(self, document: Dict[str, Any], set_fields, now: datetime, push_resposta=None) -> None:
        document.update(copy.deepcopy(set_fields))
        if push_resposta is not None:
            document.setdefault("respostas", []).append(copy.deepcopy(push_resposta))
        document["updatedAt"] = max(document["updatedAt"], now)
        document["version"] = document.get("version", 0) + 1

    def compare_and_set(
        self,
        manifestacao_id: str,
        expected_version: int,
        set_fields: Dict[str, Any],
        now: datetime,
        push_resposta: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._documents.get(manifestacao_id)
            if document is None or document.get("version", 0) != expected_version:
                return None
            self._apply(document, set_fields, now, push_resposta)
            return copy.deepcopy(document)

    def push_resposta(
        self,
        manifestacao_id: str,
        resposta: Dict[str, Any],
        now: datetime
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._documents.get(manifestacao_id)
            if document is None:
                return None
            self._apply(document, {}, now, resposta)
            return copy.deepcopy(document)

    def record_audit(self, entry: Dict[str, Any]) -> None:
        with self._lock:
            self._audit.append(copy.deepcopy(entry))

    def find_audit(self, entity_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            entries = [e for e in self._audit if e.get("entityId") == entity_id]
            return copy.deepcopy(sorted(entries, key=lambda e: e["timestamp"]))

    def health_check(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'status': 'healthy',
                'backend': 'memory',
                'documents': len(self._documents)
            }
