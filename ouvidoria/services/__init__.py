# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - persistence adapters, orchestration and side effects.
"""

from .mongodb import MongoDBService, get_mongodb_service, close_mongodb_connection
from .repository import ManifestacaoRepository, MongoManifestacaoRepository
from .repository_local import InMemoryManifestacaoRepository
from .audit import AuditService
from .store import ManifestacaoStore, ManifestacaoPageResult
from .gateway import QueryGateway, build_gateway

__all__ = [
    "MongoDBService",
    "get_mongodb_service",
    "close_mongodb_connection",
    "ManifestacaoRepository",
    "MongoManifestacaoRepository",
    "InMemoryManifestacaoRepository",
    "AuditService",
    "ManifestacaoStore",
    "ManifestacaoPageResult",
    "QueryGateway",
    "build_gateway"
]
