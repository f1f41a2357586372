# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the Ouvidoria platform.
"""

import re
from datetime import datetime
from typing import List, Optional
from pydantic import Field, field_validator, model_validator, ConfigDict
from pydantic.alias_generators import to_camel

from .base import BaseEntity, CamelModel, generate_object_id, utcnow, ensure_utc
from .enums import StatusManifestacao, TipoManifestacao, TipoAnexo

PROTOCOLO_PATTERN = re.compile(r'^\d{4}-\d{6,}$')
CONTACT_FIELDS = ("nome", "email", "telefone")


class Anexo(CamelModel):
    """Attachment reference owned by a manifestation."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        frozen=True,
    )

    id: str = Field(default_factory=generate_object_id, description="Attachment identifier")
    url: str = Field(..., min_length=1, description="Opaque reference to stored media")
    tipo: TipoAnexo = Field(..., description="Attachment media kind")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate attachment reference."""
        if not v.strip():
            raise ValueError('Attachment url cannot be empty')
        return v.strip()


class Resposta(CamelModel):
    """Staff response appended to a manifestation; immutable once created."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(default_factory=generate_object_id, description="Response identifier")
    texto: str = Field(..., min_length=1, description="Response text")
    gestor_nome: Optional[str] = Field(None, description="Staff display name")
    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")

    @field_validator('texto')
    @classmethod
    def validate_texto(cls, v):
        """Validate response text."""
        if not v.strip():
            raise ValueError('Response text cannot be empty')
        return v.strip()

    @field_validator('created_at')
    @classmethod
    def normalize_created_at(cls, v):
        return ensure_utc(v)


class Manifestacao(BaseEntity):
    """Citizen manifestation tracked by the ombudsman."""

    protocolo: str = Field(..., description="Public tracking identifier")
    tipo: TipoManifestacao = Field(..., description="Request category")
    status: StatusManifestacao = Field(
        default=StatusManifestacao.RECEBIDA, validate_default=True, description="Workflow status"
    )
    orgao: str = Field(..., min_length=1, max_length=200, description="Responsible organizational unit")
    assunto: str = Field(..., min_length=1, max_length=200, description="Subject line")
    relato: Optional[str] = Field(None, max_length=10000, description="Free-text narrative")
    anonimo: bool = Field(default=False, description="Whether the submitter identity is withheld")
    nome: Optional[str] = Field(None, max_length=200, description="Submitter name")
    email: Optional[str] = Field(None, description="Submitter email")
    telefone: Optional[str] = Field(None, max_length=30, description="Submitter phone")
    data_fato: Optional[str] = Field(None, description="Date of the reported fact (YYYY-MM-DD)")
    horario_fato: Optional[str] = Field(None, description="Time of the reported fact (HH:MM)")
    local: Optional[str] = Field(None, max_length=500, description="Where the fact happened")
    pessoas_envolvidas: Optional[str] = Field(None, max_length=2000, description="People involved")
    audio_url: Optional[str] = Field(None, max_length=2000, description="Recorded audio version of the narrative")
    anexos: List[Anexo] = Field(default_factory=list, description="Attachments fixed at creation")
    respostas: List[Resposta] = Field(default_factory=list, description="Staff responses in append order")
    version: int = Field(default=0, ge=0, description="Optimistic concurrency counter")

    @field_validator('protocolo')
    @classmethod
    def validate_protocolo(cls, v):
        """Validate protocol format."""
        if not PROTOCOLO_PATTERN.match(v):
            raise ValueError('Protocolo must match YYYY-NNNNNN')
        return v

    @field_validator('orgao', 'assunto')
    @classmethod
    def validate_required_text(cls, v):
        """Validate required free-text fields."""
        if not v.strip():
            raise ValueError('Field cannot be empty')
        return v.strip()

    @field_validator('created_at', 'updated_at')
    @classmethod
    def normalize_timestamps(cls, v):
        return ensure_utc(v)

    @model_validator(mode='after')
    def validate_invariants(self):
        """Validate anonymity and timestamp invariants."""
        if self.anonimo:
            leaked = [field for field in CONTACT_FIELDS if getattr(self, field) is not None]
            if leaked:
                raise ValueError(f'Anonymous manifestation cannot carry contact fields: {", ".join(leaked)}')

        if self.updated_at < self.created_at:
            raise ValueError('updated_at cannot be earlier than created_at')

        return self

    def is_archived(self) -> bool:
        """Check if manifestation reached the terminal status."""
        return self.status == StatusManifestacao.ARQUIVADA


class AuditLog(CamelModel):
    """Audit trail entry for manifestation mutations."""

    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    timestamp: datetime = Field(default_factory=utcnow, description="Action timestamp")
    actor: Optional[str] = Field(None, description="Staff member who performed the action")
    entity: str = Field(default="manifestacao", description="Entity type")
    entity_id: str = Field(..., description="Entity identifier")
    action: str = Field(..., description="Action performed")
    before: Optional[dict] = Field(None, description="State before action")
    after: Optional[dict] = Field(None, description="State after action")
    trace_id: Optional[str] = Field(None, description="OpenTelemetry trace ID")
    span_id: Optional[str] = Field(None, description="OpenTelemetry span ID")

    @field_validator('action')
    @classmethod
    def validate_action(cls, v):
        """Validate action type."""
        valid_actions = ['create', 'status_change', 'add_response']
        if v not in valid_actions:
            raise ValueError(f'Invalid action type: {v}')
        return v
