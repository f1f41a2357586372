# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for Pydantic models and enumerations.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError

from ouvidoria.models import (
    StatusManifestacao,
    TipoManifestacao,
    TipoAnexo,
    STATUS_LABELS,
    STATUS_COLORS,
    Manifestacao,
    Resposta,
    AuditLog,
    ManifestacaoDraft,
    PaginationParams,
    ManifestacaoFilters,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestEnumerations:
    """Test labeled enumerations."""

    def test_status_labels(self):
        assert StatusManifestacao.EM_ANALISE.label == "Em Análise"
        assert STATUS_LABELS["ARQUIVADA"] == "Arquivada"
        assert list(STATUS_LABELS) == ["RECEBIDA", "EM_ANALISE", "RESPONDIDA", "ARQUIVADA"]

    def test_enum_values_are_strings(self):
        assert StatusManifestacao.RECEBIDA == "RECEBIDA"
        assert TipoManifestacao("SOLICITACAO").label == "Solicitação"

    def test_choices(self):
        choices = TipoAnexo.choices()
        assert choices[0] == {"codigo": "IMAGEM", "label": "Imagem"}
        assert [c["codigo"] for c in choices] == ["IMAGEM", "VIDEO", "AUDIO"]

    def test_status_colours(self):
        assert StatusManifestacao.RECEBIDA.cor == "azul"
        assert STATUS_COLORS == {
            "RECEBIDA": "azul",
            "EM_ANALISE": "amarelo",
            "RESPONDIDA": "verde",
            "ARQUIVADA": "cinza",
        }
        assert StatusManifestacao.choices()[-1] == {"codigo": "ARQUIVADA", "label": "Arquivada", "cor": "cinza"}


class TestManifestacaoModel:
    """Test Manifestacao entity invariants."""

    def _data(self, **overrides):
        data = {
            "protocolo": "2025-000001",
            "tipo": "SUGESTAO",
            "orgao": "Secretaria de Educação",
            "assunto": "Horário da biblioteca",
            "nome": "João",
            "created_at": NOW,
            "updated_at": NOW,
        }
        data.update(overrides)
        return data

    def test_defaults(self):
        manifestacao = Manifestacao(**self._data())
        assert manifestacao.status == "RECEBIDA"
        assert manifestacao.version == 0
        assert manifestacao.respostas == []
        assert not manifestacao.is_archived()

    @pytest.mark.parametrize("protocolo", ["2025-1", "25-000001", "2025000001", "2025-00000a"])
    def test_rejects_malformed_protocolo(self, protocolo):
        with pytest.raises(ValidationError):
            Manifestacao(**self._data(protocolo=protocolo))

    def test_accepts_sequence_wider_than_six_digits(self):
        manifestacao = Manifestacao(**self._data(protocolo="2025-1000000"))
        assert manifestacao.protocolo == "2025-1000000"

    def test_rejects_blank_orgao(self):
        with pytest.raises(ValidationError):
            Manifestacao(**self._data(orgao="   "))

    def test_anonymous_cannot_carry_contact(self):
        with pytest.raises(ValidationError) as exc_info:
            Manifestacao(**self._data(anonimo=True, nome="Alguém"))
        assert "contact" in str(exc_info.value)

    def test_updated_at_not_before_created_at(self):
        with pytest.raises(ValidationError):
            Manifestacao(**self._data(updated_at=NOW - timedelta(seconds=1)))

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            Manifestacao(**self._data(status="FECHADA"))

    def test_document_round_trip_uses_camel_case(self):
        manifestacao = Manifestacao(**self._data(data_fato="2025-03-01"))
        document = manifestacao.to_document()

        assert document["_id"] == manifestacao.id
        assert "id" not in document
        assert document["dataFato"] == "2025-03-01"
        assert document["createdAt"] == NOW

        restored = Manifestacao.from_document(document)
        assert restored.model_dump() == manifestacao.model_dump()

    def test_audio_url_stored_in_camel_case(self):
        manifestacao = Manifestacao(**self._data(audio_url="uploads/relato.webm"))
        document = manifestacao.to_document()

        assert document["audioUrl"] == "uploads/relato.webm"
        assert Manifestacao.from_document(document).audio_url == "uploads/relato.webm"

    def test_naive_timestamps_become_utc(self):
        naive = NOW.replace(tzinfo=None)
        manifestacao = Manifestacao(**self._data(created_at=naive, updated_at=naive))
        assert manifestacao.created_at.tzinfo is not None


class TestResposta:

    def test_text_is_trimmed(self):
        resposta = Resposta(texto="  Em andamento.  ")
        assert resposta.texto == "Em andamento."

    def test_blank_text_rejected(self):
        with pytest.raises(ValidationError):
            Resposta(texto="   ")

    def test_immutable(self):
        resposta = Resposta(texto="Ok")
        with pytest.raises(ValidationError):
            resposta.texto = "Outro"


class TestAuditLog:

    def test_invalid_action(self):
        with pytest.raises(ValidationError):
            AuditLog(entity_id="abc", action="delete")

    def test_defaults(self):
        entry = AuditLog(entity_id="abc", action="create")
        assert entry.entity == "manifestacao"
        assert entry.to_document()["entityId"] == "abc"


class TestManifestacaoDraft:
    """Test submission payload validation."""

    def test_accepts_camel_case_payload(self, identified_draft):
        draft = ManifestacaoDraft.model_validate(identified_draft)
        assert draft.data_fato == "2025-03-01"
        assert draft.horario_fato == "14:30"
        assert draft.anexos[0].tipo == "IMAGEM"

    def test_anonymous_strips_contact(self, anonymous_draft):
        draft = ManifestacaoDraft.model_validate(anonymous_draft)
        assert draft.nome is None
        assert draft.email is None
        assert draft.telefone is None

    def test_anonymous_ignores_malformed_contact(self, anonymous_draft):
        anonymous_draft["email"] = "not-an-email"
        anonymous_draft["telefone"] = "9" * 60

        draft = ManifestacaoDraft.model_validate(anonymous_draft)

        assert draft.anonimo is True
        assert draft.email is None
        assert draft.telefone is None

    def test_audio_url_accepted(self, identified_draft):
        identified_draft["audioUrl"] = "uploads/relato.webm"
        draft = ManifestacaoDraft.model_validate(identified_draft)
        assert draft.audio_url == "uploads/relato.webm"

    def test_identified_requires_contact(self, identified_draft):
        for field in ("nome", "email", "telefone"):
            identified_draft.pop(field)
        with pytest.raises(ValidationError):
            ManifestacaoDraft.model_validate(identified_draft)

    def test_blank_strings_are_absent(self, identified_draft):
        identified_draft["local"] = "   "
        draft = ManifestacaoDraft.model_validate(identified_draft)
        assert draft.local is None

    @pytest.mark.parametrize("field,value", [
        ("tipo", "RECLAMACAO_GRAVE"),
        ("email", "not-an-email"),
        ("dataFato", "01/03/2025"),
        ("dataFato", "2025-02-30"),
        ("horarioFato", "25:00"),
        ("orgao", ""),
    ])
    def test_invalid_fields(self, identified_draft, field, value):
        identified_draft[field] = value
        with pytest.raises(ValidationError):
            ManifestacaoDraft.model_validate(identified_draft)

    def test_email_is_lowercased(self, identified_draft):
        identified_draft["email"] = "Maria@Example.COM"
        draft = ManifestacaoDraft.model_validate(identified_draft)
        assert draft.email == "maria@example.com"


class TestQueryModels:

    def test_pagination_defaults(self):
        params = PaginationParams()
        assert params.page == 1
        assert params.page_size == 20
        assert params.snapshot is None

    def test_pagination_snapshot_parsed(self):
        params = PaginationParams(snapshot="2025-03-10T12:00:00")
        assert params.snapshot == NOW

    def test_page_size_upper_bound(self):
        with pytest.raises(ValidationError):
            PaginationParams(page_size=101)

    def test_filters_blank_values(self):
        filters = ManifestacaoFilters(status="", tipo=None, orgao="  ")
        assert filters.status is None
        assert filters.orgao is None

    def test_filters_unknown_status(self):
        with pytest.raises(ValidationError):
            ManifestacaoFilters(status="FECHADA")
