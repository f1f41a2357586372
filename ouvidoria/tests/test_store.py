# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for ManifestacaoStore creation, lookups and listing.
"""

import pytest
from unittest.mock import MagicMock

from ouvidoria.domain.errors import ConflictException, NotFoundException, ValidationException
from ouvidoria.domain.protocol import ProtocolGenerator
from ouvidoria.models import ManifestacaoFilters, PaginationParams
from ouvidoria.services.store import ManifestacaoStore


class TestCreate:

    @pytest.fixture
    def store(self, repository, clock):
        return ManifestacaoStore(repository, clock=clock)

    def test_create_identified(self, store, identified_draft, clock):
        manifestacao = store.create(identified_draft)

        assert manifestacao.protocolo == "2025-000001"
        assert manifestacao.status == "RECEBIDA"
        assert manifestacao.created_at == clock()
        assert manifestacao.updated_at == manifestacao.created_at
        assert manifestacao.respostas == []
        assert manifestacao.nome == "Maria Silva"
        assert manifestacao.anexos[0].url == "uploads/2025/foto.jpg"

    def test_create_anonymous_drops_contact(self, store, repository, anonymous_draft):
        manifestacao = store.create(anonymous_draft)
        document = repository.find_by_id(manifestacao.id)

        assert document["anonimo"] is True
        assert document["nome"] is None
        assert document["email"] is None
        assert document["telefone"] is None

    def test_protocols_are_sequential(self, store, identified_draft):
        protocolos = [store.create(identified_draft).protocolo for _ in range(3)]
        assert protocolos == ["2025-000001", "2025-000002", "2025-000003"]

    def test_invalid_draft_stores_nothing(self, store, repository, identified_draft):
        identified_draft["tipo"] = "OUTRO"

        with pytest.raises(ValidationException) as exc_info:
            store.create(identified_draft)

        assert exc_info.value.validation_errors[0]["field"] == "tipo"
        assert repository.find_page({}, store.clock(), 0, 10)[1] == 0

    def test_non_dict_draft(self, store):
        with pytest.raises(ValidationException):
            store.create(["not", "a", "draft"])

    def test_retries_protocol_conflicts(self, repository, clock, identified_draft):
        generator = MagicMock(spec=ProtocolGenerator)
        generator.issue.side_effect = [ConflictException(), "2025-000007"]
        store = ManifestacaoStore(repository, protocol_generator=generator, clock=clock)

        manifestacao = store.create(identified_draft)

        assert manifestacao.protocolo == "2025-000007"
        assert generator.issue.call_count == 2

    def test_duplicate_protocol_is_never_reused(self, repository, clock, identified_draft):
        generator = MagicMock(spec=ProtocolGenerator)
        generator.issue.side_effect = ["2025-000001", "2025-000001", "2025-000002"]
        store = ManifestacaoStore(repository, protocol_generator=generator, clock=clock)

        first = store.create(identified_draft)
        second = store.create(identified_draft)

        assert first.protocolo == "2025-000001"
        assert second.protocolo == "2025-000002"

    def test_conflict_after_max_attempts(self, repository, clock, identified_draft):
        generator = MagicMock(spec=ProtocolGenerator)
        generator.issue.side_effect = ConflictException()
        store = ManifestacaoStore(repository, protocol_generator=generator, clock=clock, max_protocol_attempts=3)

        with pytest.raises(ConflictException):
            store.create(identified_draft)

        assert generator.issue.call_count == 3


class TestLookups:

    @pytest.fixture
    def store(self, repository, clock):
        return ManifestacaoStore(repository, clock=clock)

    def test_get_by_id(self, store, identified_draft):
        created = store.create(identified_draft)
        assert store.get_by_id(created.id).protocolo == created.protocolo

    def test_get_by_id_unknown(self, store):
        with pytest.raises(NotFoundException):
            store.get_by_id("000000000000000000000000")

    def test_get_by_protocolo_is_exact(self, store, identified_draft):
        created = store.create(identified_draft)
        assert store.get_by_protocolo(created.protocolo).id == created.id

        with pytest.raises(NotFoundException):
            store.get_by_protocolo("2025-000002")


class TestList:

    @pytest.fixture
    def store(self, repository, clock):
        return ManifestacaoStore(repository, clock=clock)

    def _create_many(self, store, clock, draft, count):
        created = []
        for _ in range(count):
            clock.advance(minutes=1)
            created.append(store.create(draft))
        return created

    def test_newest_first(self, store, clock, identified_draft):
        created = self._create_many(store, clock, identified_draft, 3)

        result = store.list()

        assert [m.id for m in result.items] == [m.id for m in reversed(created)]
        assert result.total == 3
        assert result.snapshot == clock()

    def test_filters(self, store, clock, identified_draft, anonymous_draft):
        self._create_many(store, clock, identified_draft, 2)
        self._create_many(store, clock, anonymous_draft, 1)

        result = store.list(ManifestacaoFilters(tipo="DENUNCIA"))
        assert result.total == 1
        assert result.items[0].tipo == "DENUNCIA"

        result = store.list(ManifestacaoFilters(orgao="Secretaria de Saúde", status="RECEBIDA"))
        assert result.total == 2

        result = store.list(ManifestacaoFilters(status="ARQUIVADA"))
        assert result.total == 0
        assert result.items == []

    def test_snapshot_pages_are_stable(self, store, clock, identified_draft):
        created = self._create_many(store, clock, identified_draft, 5)

        first = store.list(pagination=PaginationParams(page=1, page_size=2))
        assert [m.id for m in first.items] == [created[4].id, created[3].id]
        assert first.total_pages == 3
        assert first.has_next

        # New submissions after the first page must not shift later pages
        self._create_many(store, clock, identified_draft, 2)

        second = store.list(pagination=PaginationParams(page=2, page_size=2, snapshot=first.snapshot))
        third = store.list(pagination=PaginationParams(page=3, page_size=2, snapshot=first.snapshot))

        assert [m.id for m in second.items] == [created[2].id, created[1].id]
        assert [m.id for m in third.items] == [created[0].id]
        assert third.total == 5
        assert not third.has_next

    def test_ties_ordered_by_id(self, store, identified_draft):
        # Same clock reading for every create
        created = [store.create(identified_draft) for _ in range(3)]

        result = store.list()

        assert [m.id for m in result.items] == sorted((m.id for m in created), reverse=True)

    def test_page_past_end_is_empty(self, store, clock, identified_draft):
        self._create_many(store, clock, identified_draft, 1)
        result = store.list(pagination=PaginationParams(page=4, page_size=10))
        assert result.items == []
        assert result.total == 1

    def test_snapshot_stamped_at_millisecond_precision(self, store, clock, identified_draft):
        clock.advance(microseconds=123456)
        manifestacao = store.create(identified_draft)

        result = store.list()

        # Same precision as a BSON date, so the stored value compares as written
        assert manifestacao.created_at.microsecond == 123000
        assert result.snapshot.microsecond == 123000
        assert [m.id for m in result.items] == [manifestacao.id]
