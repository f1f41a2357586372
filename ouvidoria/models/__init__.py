# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the Ouvidoria platform.
"""

# Base models
from .base import BaseEntity, CamelModel, generate_object_id, utcnow

# Enumerations
from .enums import (
    StatusManifestacao,
    TipoManifestacao,
    TipoAnexo,
    STATUS_LABELS,
    STATUS_COLORS,
    TIPOS_MANIFESTACAO_LABELS,
    TIPOS_ANEXO_LABELS
)

# Core entities
from .entities import (
    Anexo,
    Resposta,
    Manifestacao,
    AuditLog,
    PROTOCOLO_PATTERN,
    CONTACT_FIELDS
)

# Request models
from .requests import (
    AnexoInput,
    ManifestacaoDraft,
    UpdateStatusRequest,
    AddRespostaRequest,
    ManifestacaoFilters,
    PaginationParams
)

# Response models
from .responses import (
    HalLink,
    AnexoView,
    RespostaView,
    ManifestacaoPublicView,
    ManifestacaoDetailView,
    ManifestacaoSummary
)

__all__ = [
    # Base models
    "BaseEntity",
    "CamelModel",
    "generate_object_id",
    "utcnow",

    # Enumerations
    "StatusManifestacao",
    "TipoManifestacao",
    "TipoAnexo",
    "STATUS_LABELS",
    "STATUS_COLORS",
    "TIPOS_MANIFESTACAO_LABELS",
    "TIPOS_ANEXO_LABELS",

    # Core entities
    "Anexo",
    "Resposta",
    "Manifestacao",
    "AuditLog",
    "PROTOCOLO_PATTERN",
    "CONTACT_FIELDS",

    # Request models
    "AnexoInput",
    "ManifestacaoDraft",
    "UpdateStatusRequest",
    "AddRespostaRequest",
    "ManifestacaoFilters",
    "PaginationParams",

    # Response models
    "HalLink",
    "AnexoView",
    "RespostaView",
    "ManifestacaoPublicView",
    "ManifestacaoDetailView",
    "ManifestacaoSummary"
]
