# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Manifestation storage port and its MongoDB adapter.

Documents are stored with camelCase keys and a string ``_id``. Every
mutation bumps an integer ``version`` and moves ``updatedAt`` forward with
``$max`` so it never decreases.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError
from opentelemetry import trace

from ..domain.errors import ConflictException

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MANIFESTACOES = "manifestacoes"
COUNTERS = "counters"
AUDIT_LOGS = "audit_logs"


def counter_key(year: int) -> str:
    """Counter document id for a protocol year."""
    return f"protocolo:{year}"


class ManifestacaoRepository:
    """Storage contract used by the store, lifecycle engine and ledger."""

    def next_sequence(self, year: int) -> int:
        """Atomically increment and return the protocol counter of ``year``."""
        raise NotImplementedError

    def insert(self, document: Dict[str, Any]) -> None:
        """Persist a new manifestation; duplicate protocol raises ``ConflictException``."""
        raise NotImplementedError

    def find_by_id(self, manifestacao_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def find_by_protocolo(self, protocolo: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def find_page(
        self,
        query: Dict[str, Any],
        snapshot: datetime,
        skip: int,
        limit: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Page of documents created at or before ``snapshot``, newest first."""
        raise NotImplementedError

    def compare_and_set(
        self,
        manifestacao_id: str,
        expected_version: int,
        set_fields: Dict[str, Any],
        now: datetime,
        push_resposta: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Apply ``set_fields`` (and optionally append a response) only if the
        stored version equals ``expected_version``.

        Returns the updated document, or ``None`` when the document is missing
        or its version moved on.
        """
        raise NotImplementedError

    def push_resposta(
        self,
        manifestacao_id: str,
        resposta: Dict[str, Any],
        now: datetime
    ) -> Optional[Dict[str, Any]]:
        """Atomically append a response; ``None`` when the document is missing."""
        raise NotImplementedError

    def record_audit(self, entry: Dict[str, Any]) -> None:
        raise NotImplementedError

    def find_audit(self, entity_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def health_check(self) -> Dict[str, Any]:
        raise NotImplementedError


class MongoManifestacaoRepository(ManifestacaoRepository):
    """MongoDB-backed manifestation repository."""

    def __init__(self, mongodb_service):
        self.mongodb_service = mongodb_service

    @property
    def manifestacoes(self):
        return self.mongodb_service.get_collection(MANIFESTACOES)

    @property
    def counters(self):
        return self.mongodb_service.get_collection(COUNTERS)

    @property
    def audit_logs(self):
        return self.mongodb_service.get_collection(AUDIT_LOGS)

    def next_sequence(self, year: int) -> int:
        with tracer.start_as_current_span("db.counters.increment") as span:
            span.set_attributes({"db.collection": COUNTERS, "protocol.year": year})
            try:
                counter = self.counters.find_one_and_update(
                    {"_id": counter_key(year)},
                    {"$inc": {"seq": 1}},
                    upsert=True,
                    return_document=ReturnDocument.AFTER
                )
            except DuplicateKeyError as e:
                # Two first-of-year upserts raced; the loser must allocate again
                logger.warning(f"Protocol counter upsert conflict for {year}: {e}")
                raise ConflictException("Conflito ao alocar número de protocolo")
            return int(counter["seq"])

    def insert(self, document: Dict[str, Any]) -> None:
        with tracer.start_as_current_span("db.manifestacoes.insert") as span:
            span.set_attributes({"db.collection": MANIFESTACOES, "manifestacao.id": document["_id"]})
            try:
                self.manifestacoes.insert_one(document)
            except DuplicateKeyError as e:
                logger.error(f"Duplicate key inserting manifestation {document.get('protocolo')}: {e}")
                raise ConflictException("Protocolo já utilizado")
            logger.info(f"Created document in {MANIFESTACOES}: {document['_id']}")

    def find_by_id(self, manifestacao_id: str) -> Optional[Dict[str, Any]]:
        if not isinstance(manifestacao_id, str):
            return None
        return self.manifestacoes.find_one({"_id": manifestacao_id})

    def find_by_protocolo(self, protocolo: str) -> Optional[Dict[str, Any]]:
        # Served by the unique protocolo index
        return self.manifestacoes.find_one({"protocolo": protocolo})

    def find_page(
        self,
        query: Dict[str, Any],
        snapshot: datetime,
        skip: int,
        limit: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        with tracer.start_as_current_span("db.manifestacoes.paginate") as span:
            scoped_query = dict(query)
            scoped_query["createdAt"] = {"$lte": snapshot}

            total = self.manifestacoes.count_documents(scoped_query)
            cursor = (
                self.manifestacoes.find(scoped_query)
                .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
                .skip(skip)
                .limit(limit)
            )
            documents = list(cursor)

            span.set_attributes({
                "db.collection": MANIFESTACOES,
                "db.result_count": len(documents),
                "db.total_count": total
            })
            logger.debug(f"Paginated {len(documents)} documents from {MANIFESTACOES} (skip {skip})")
            return documents, total

    def _mutation(self, set_fields: Dict[str, Any], now: datetime, push_resposta=None) -> Dict[str, Any]:
        update: Dict[str, Any] = {
            "$max": {"updatedAt": now},
            "$inc": {"version": 1}
        }
        if set_fields:
            update["$set"] = set_fields
        if push_resposta is not None:
            update["$push"] = {"respostas": push_resposta}
        return update

    def compare_and_set(
        self,
        manifestacao_id: str,
        expected_version: int,
        set_fields: Dict[str, Any],
        now: datetime,
        push_resposta: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        with tracer.start_as_current_span("db.manifestacoes.compare_and_set") as span:
            span.set_attributes({
                "db.collection": MANIFESTACOES,
                "manifestacao.id": manifestacao_id,
                "manifestacao.expected_version": expected_version
            })
            return self.manifestacoes.find_one_and_update(
                {"_id": manifestacao_id, "version": expected_version},
                self._mutation(set_fields, now, push_resposta),
                return_document=ReturnDocument.AFTER
            )

    def push_resposta(
        self,
        manifestacao_id: str,
        resposta: Dict[str, Any],
        now: datetime
    ) -> Optional[Dict[str, Any]]:
        with tracer.start_as_current_span("db.manifestacoes.push_resposta") as span:
            span.set_attributes({"db.collection": MANIFESTACOES, "manifestacao.id": manifestacao_id})
            return self.manifestacoes.find_one_and_update(
                {"_id": manifestacao_id},
                self._mutation({}, now, resposta),
                return_document=ReturnDocument.AFTER
            )

    def record_audit(self, entry: Dict[str, Any]) -> None:
        self.audit_logs.insert_one(entry)

    def find_audit(self, entity_id: str) -> List[Dict[str, Any]]:
        cursor = self.audit_logs.find({"entityId": entity_id}).sort("timestamp", ASCENDING)
        return list(cursor)

    def health_check(self) -> Dict[str, Any]:
        return self.mongodb_service.health_check()
