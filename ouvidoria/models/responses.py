# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from .base import CamelModel


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class AnexoView(CamelModel):
    """Attachment as exposed to callers."""

    id: str
    url: str
    tipo: str
    tipo_label: str


class RespostaView(CamelModel):
    """Staff response as exposed to callers."""

    id: str
    texto: str
    gestor_nome: Optional[str] = None
    created_at: datetime


class ManifestacaoPublicView(CamelModel):
    """Manifestation shape served by the public protocol lookup."""

    protocolo: str
    tipo: str
    tipo_label: str
    status: str
    status_label: str
    status_cor: str
    orgao: str
    assunto: str
    relato: Optional[str] = None
    anonimo: bool
    nome: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    data_fato: Optional[str] = None
    horario_fato: Optional[str] = None
    local: Optional[str] = None
    pessoas_envolvidas: Optional[str] = None
    audio_url: Optional[str] = None
    anexos: List[AnexoView] = Field(default_factory=list)
    respostas: List[RespostaView] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ManifestacaoDetailView(ManifestacaoPublicView):
    """Administrative manifestation detail."""

    id: str
    version: int
    transicoes_permitidas: List[str] = Field(default_factory=list)


class ManifestacaoSummary(CamelModel):
    """Compact manifestation row for administrative listings."""

    id: str
    protocolo: str
    tipo: str
    tipo_label: str
    status: str
    status_label: str
    status_cor: str
    orgao: str
    assunto: str
    anonimo: bool
    total_respostas: int
    created_at: datetime
    updated_at: datetime

