# SPDX-License-Identifier: Apache-2.0

"""
Manifestation domain logic.

This module contains pure functions for draft validation, entity
construction, identity redaction, listing filters and view building.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import ValidationError

from ..models.entities import Anexo, Manifestacao, CONTACT_FIELDS
from ..models.enums import (
    StatusManifestacao,
    TipoManifestacao,
    TipoAnexo,
    STATUS_LABELS,
    STATUS_COLORS,
    TIPOS_MANIFESTACAO_LABELS,
    TIPOS_ANEXO_LABELS
)
from ..models.requests import ManifestacaoDraft, ManifestacaoFilters
from ..models.responses import (
    AnexoView,
    RespostaView,
    ManifestacaoPublicView,
    ManifestacaoDetailView,
    ManifestacaoSummary
)
from .errors import ValidationException, from_pydantic_error
from .lifecycle import INITIAL_STATUS, allowed_transitions, transition_table


def parse_draft(draft: Union[ManifestacaoDraft, Dict[str, Any]]) -> ManifestacaoDraft:
    """
    Validate a submission payload.

    Args:
        draft: Draft model or raw payload (camelCase or snake_case keys)

    Returns:
        Normalised draft; contact fields are cleared for anonymous drafts

    Raises:
        ValidationException: with one entry per offending field
    """
    if isinstance(draft, ManifestacaoDraft):
        return draft
    if not isinstance(draft, dict):
        raise ValidationException("Corpo da requisição inválido")
    try:
        return ManifestacaoDraft.model_validate(draft)
    except ValidationError as e:
        raise from_pydantic_error(e, "Dados da manifestação inválidos")


def build_manifestacao(draft: ManifestacaoDraft, protocolo: str, now: datetime) -> Manifestacao:
    """Create the entity for a validated draft with a freshly issued protocol."""
    anexos = [Anexo(url=anexo.url, tipo=anexo.tipo) for anexo in draft.anexos]
    return Manifestacao(
        protocolo=protocolo,
        tipo=draft.tipo,
        status=INITIAL_STATUS,
        orgao=draft.orgao,
        assunto=draft.assunto,
        relato=draft.relato,
        anonimo=draft.anonimo,
        nome=draft.nome,
        email=draft.email,
        telefone=draft.telefone,
        data_fato=draft.data_fato,
        horario_fato=draft.horario_fato,
        local=draft.local,
        pessoas_envolvidas=draft.pessoas_envolvidas,
        audio_url=draft.audio_url,
        anexos=anexos,
        respostas=[],
        created_at=now,
        updated_at=now,
        version=0
    )


def redact_identity(data: Dict[str, Any], anonimo: bool) -> Dict[str, Any]:
    """Blank submitter contact fields of anonymous manifestations."""
    if anonimo:
        for field in CONTACT_FIELDS:
            data[field] = None
    return data


def _base_view_data(manifestacao: Manifestacao) -> Dict[str, Any]:
    data = {
        "protocolo": manifestacao.protocolo,
        "tipo": manifestacao.tipo,
        "tipo_label": TIPOS_MANIFESTACAO_LABELS[manifestacao.tipo],
        "status": manifestacao.status,
        "status_label": STATUS_LABELS[manifestacao.status],
        "status_cor": STATUS_COLORS[manifestacao.status],
        "orgao": manifestacao.orgao,
        "assunto": manifestacao.assunto,
        "relato": manifestacao.relato,
        "anonimo": manifestacao.anonimo,
        "nome": manifestacao.nome,
        "email": manifestacao.email,
        "telefone": manifestacao.telefone,
        "data_fato": manifestacao.data_fato,
        "horario_fato": manifestacao.horario_fato,
        "local": manifestacao.local,
        "pessoas_envolvidas": manifestacao.pessoas_envolvidas,
        "audio_url": manifestacao.audio_url,
        "anexos": [
            AnexoView(id=a.id, url=a.url, tipo=a.tipo, tipo_label=TIPOS_ANEXO_LABELS[a.tipo])
            for a in manifestacao.anexos
        ],
        "respostas": [
            RespostaView(id=r.id, texto=r.texto, gestor_nome=r.gestor_nome, created_at=r.created_at)
            for r in manifestacao.respostas
        ],
        "created_at": manifestacao.created_at,
        "updated_at": manifestacao.updated_at
    }
    return redact_identity(data, manifestacao.anonimo)


def to_public_view(manifestacao: Manifestacao) -> Dict[str, Any]:
    """JSON-ready view for the anonymous protocol lookup."""
    view = ManifestacaoPublicView(**_base_view_data(manifestacao))
    return view.model_dump(by_alias=True, mode="json")


def to_detail_view(manifestacao: Manifestacao) -> Dict[str, Any]:
    """JSON-ready administrative detail; anonymity is still honoured."""
    view = ManifestacaoDetailView(
        id=manifestacao.id,
        version=manifestacao.version,
        transicoes_permitidas=allowed_transitions(manifestacao.status),
        **_base_view_data(manifestacao)
    )
    return view.model_dump(by_alias=True, mode="json")


def to_summary(manifestacao: Manifestacao) -> Dict[str, Any]:
    """JSON-ready listing row."""
    summary = ManifestacaoSummary(
        id=manifestacao.id,
        protocolo=manifestacao.protocolo,
        tipo=manifestacao.tipo,
        tipo_label=TIPOS_MANIFESTACAO_LABELS[manifestacao.tipo],
        status=manifestacao.status,
        status_label=STATUS_LABELS[manifestacao.status],
        status_cor=STATUS_COLORS[manifestacao.status],
        orgao=manifestacao.orgao,
        assunto=manifestacao.assunto,
        anonimo=manifestacao.anonimo,
        total_respostas=len(manifestacao.respostas),
        created_at=manifestacao.created_at,
        updated_at=manifestacao.updated_at
    )
    return summary.model_dump(by_alias=True, mode="json")


def build_filter_query(filters: Optional[ManifestacaoFilters]) -> Dict[str, Any]:
    """
    Translate listing filters into an exact-match document query.

    Keys use the stored (camelCase) field names.
    """
    query: Dict[str, Any] = {}
    if filters is None:
        return query

    if filters.status:
        query["status"] = filters.status

    if filters.tipo:
        query["tipo"] = filters.tipo

    if filters.orgao:
        query["orgao"] = filters.orgao

    return query


def matches_query(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Check a stored document against an exact-match query."""
    return all(document.get(key) == value for key, value in query.items())


def total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size if page_size > 0 else 1


def enumerations() -> Dict[str, Any]:
    """Authoritative vocabularies for presentation layers."""
    return {
        "status": StatusManifestacao.choices(),
        "tipos": TipoManifestacao.choices(),
        "tiposAnexo": TipoAnexo.choices(),
        "transicoes": transition_table()
    }
