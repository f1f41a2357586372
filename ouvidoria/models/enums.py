# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the Ouvidoria platform.

Each enumeration carries its fixed display label so that callers never
invent status, type or attachment vocabularies of their own.
"""

from enum import Enum
from typing import Dict, List


class LabeledEnum(str, Enum):
    """String enumeration with a fixed human-readable label per member."""

    def __new__(cls, value: str, label: str):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.label = label
        return obj

    @classmethod
    def labels(cls) -> Dict[str, str]:
        """Mapping of code to display label, in declaration order."""
        return {member.value: member.label for member in cls}

    @classmethod
    def choices(cls) -> List[Dict[str, str]]:
        """Ordered list of ``{codigo, label}`` entries."""
        return [{"codigo": member.value, "label": member.label} for member in cls]


class StatusManifestacao(LabeledEnum):
    """Manifestation workflow status with its display label and badge colour."""
    RECEBIDA = ("RECEBIDA", "Recebida", "azul")
    EM_ANALISE = ("EM_ANALISE", "Em Análise", "amarelo")
    RESPONDIDA = ("RESPONDIDA", "Respondida", "verde")
    ARQUIVADA = ("ARQUIVADA", "Arquivada", "cinza")

    def __new__(cls, value: str, label: str, cor: str):
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.label = label
        obj.cor = cor
        return obj

    @classmethod
    def choices(cls) -> List[Dict[str, str]]:
        """Ordered list of ``{codigo, label, cor}`` entries."""
        return [{"codigo": member.value, "label": member.label, "cor": member.cor} for member in cls]


class TipoManifestacao(LabeledEnum):
    """Closed set of request categories."""
    RECLAMACAO = ("RECLAMACAO", "Reclamação")
    SUGESTAO = ("SUGESTAO", "Sugestão")
    ELOGIO = ("ELOGIO", "Elogio")
    DENUNCIA = ("DENUNCIA", "Denúncia")
    SOLICITACAO = ("SOLICITACAO", "Solicitação")


class TipoAnexo(LabeledEnum):
    """Attachment media kinds."""
    IMAGEM = ("IMAGEM", "Imagem")
    VIDEO = ("VIDEO", "Vídeo")
    AUDIO = ("AUDIO", "Áudio")


STATUS_LABELS: Dict[str, str] = StatusManifestacao.labels()
STATUS_COLORS: Dict[str, str] = {member.value: member.cor for member in StatusManifestacao}
TIPOS_MANIFESTACAO_LABELS: Dict[str, str] = TipoManifestacao.labels()
TIPOS_ANEXO_LABELS: Dict[str, str] = TipoAnexo.labels()
