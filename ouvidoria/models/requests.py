# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.
"""

import re
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator, ConfigDict
from pydantic.alias_generators import to_camel

from .base import ensure_utc
from .enums import StatusManifestacao, TipoManifestacao, TipoAnexo

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


class RequestModel(BaseModel):
    """Base for inbound payloads, accepting camelCase or snake_case keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class AnexoInput(RequestModel):
    """Reference to an already-stored attachment."""

    url: str = Field(..., min_length=1, description="Opaque reference to stored media")
    tipo: TipoAnexo = Field(..., description="Attachment media kind")


class ManifestacaoDraft(RequestModel):
    """Request model for submitting a manifestation."""

    tipo: TipoManifestacao = Field(..., description="Request category")
    orgao: str = Field(..., min_length=1, max_length=200, description="Responsible organizational unit")
    assunto: str = Field(..., min_length=1, max_length=200, description="Subject line")
    relato: Optional[str] = Field(None, max_length=10000, description="Free-text narrative")
    anonimo: bool = Field(default=False, description="Withhold submitter identity")
    nome: Optional[str] = Field(None, max_length=200, description="Submitter name")
    email: Optional[str] = Field(None, description="Submitter email")
    telefone: Optional[str] = Field(None, max_length=30, description="Submitter phone")
    data_fato: Optional[str] = Field(None, description="Date of the fact (YYYY-MM-DD)")
    horario_fato: Optional[str] = Field(None, description="Time of the fact (HH:MM)")
    local: Optional[str] = Field(None, max_length=500, description="Where the fact happened")
    pessoas_envolvidas: Optional[str] = Field(None, max_length=2000, description="People involved")
    audio_url: Optional[str] = Field(None, max_length=2000, description="Stored audio recording of the narrative")
    anexos: List[AnexoInput] = Field(default_factory=list, max_length=20, description="Stored attachments")

    @field_validator(
        'relato', 'nome', 'email', 'telefone', 'data_fato', 'horario_fato',
        'local', 'pessoas_envolvidas', 'audio_url', mode='before'
    )
    @classmethod
    def blank_optional_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator('nome', 'email', 'telefone', mode='before')
    @classmethod
    def drop_contact_when_anonymous(cls, v, info: ValidationInfo):
        """Anonymous drafts discard contact data before any format check."""
        if info.data.get('anonimo'):
            return None
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        if v is None:
            return v
        if not EMAIL_PATTERN.match(v.lower()):
            raise ValueError('Invalid email format')
        return v.lower()

    @field_validator('data_fato')
    @classmethod
    def validate_data_fato(cls, v):
        """Validate fact date as an ISO calendar date."""
        if v is None:
            return v
        if not DATE_PATTERN.match(v):
            raise ValueError('dataFato must use YYYY-MM-DD')
        datetime.strptime(v, '%Y-%m-%d')
        return v

    @field_validator('horario_fato')
    @classmethod
    def validate_horario_fato(cls, v):
        """Validate fact time."""
        if v is not None and not TIME_PATTERN.match(v):
            raise ValueError('horarioFato must use HH:MM')
        return v

    @model_validator(mode='after')
    def validate_identity(self):
        """Strip contact data of anonymous drafts and require it otherwise."""
        if self.anonimo:
            self.nome = None
            self.email = None
            self.telefone = None
        elif not (self.nome or self.email or self.telefone):
            raise ValueError('Identified manifestations require at least one contact field')
        return self


class UpdateStatusRequest(RequestModel):
    """Request model for moving a manifestation to a new status."""

    status: StatusManifestacao = Field(..., description="Target status")
    expected_status: Optional[StatusManifestacao] = Field(
        None, description="Status the caller last observed"
    )
    actor: Optional[str] = Field(None, max_length=200, description="Staff member applying the change")


class AddRespostaRequest(RequestModel):
    """Request model for appending a staff response."""

    # Emptiness is enforced by ResponseLedger
    texto: str = Field(..., max_length=10000, description="Response text")
    gestor_nome: Optional[str] = Field(None, max_length=200, description="Staff display name")
    status: Optional[StatusManifestacao] = Field(
        None, description="Optional status to apply together with the response"
    )

    @field_validator('gestor_nome', mode='before')
    @classmethod
    def blank_gestor_to_none(cls, v):
        return _blank_to_none(v)


class ManifestacaoFilters(RequestModel):
    """Filters for manifestation listing."""

    status: Optional[StatusManifestacao] = Field(None, description="Filter by status")
    tipo: Optional[TipoManifestacao] = Field(None, description="Filter by category")
    orgao: Optional[str] = Field(None, description="Filter by organizational unit")

    @field_validator('status', 'tipo', 'orgao', mode='before')
    @classmethod
    def blank_filter_to_none(cls, v):
        return _blank_to_none(v)


class PaginationParams(RequestModel):
    """Pagination parameters over a listing snapshot."""

    page: int = Field(default=1, ge=1, description="Page number")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")
    snapshot: Optional[datetime] = Field(None, description="Listing snapshot from the first page")

    @field_validator('snapshot')
    @classmethod
    def normalize_snapshot(cls, v):
        return ensure_utc(v) if v is not None else v
