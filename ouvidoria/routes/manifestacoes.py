# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Public manifestation endpoints: submission, protocol lookup and metadata.
"""

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel, Field
import logging

from ..middleware.rate_limit import rate_limit
from ..utils.request import get_json_body

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ProtocoloPath(BaseModel):
    protocolo: str = Field(..., description="Protocol number, e.g. 2025-000001")


manifestacoes_tag = Tag(name="Manifestações", description="Citizen submissions and protocol lookup")
manifestacoes_bp = APIBlueprint(
    'manifestacoes',
    __name__,
    url_prefix='/api/manifestacoes',
    abp_tags=[manifestacoes_tag]
)


@manifestacoes_bp.post('')
def submit_manifestacao():
    """
    Submit a manifestation.

    Validates the draft, issues a protocol and stores the manifestation with
    status RECEBIDA. Anonymous submissions have their contact fields dropped.
    """
    with tracer.start_as_current_span("manifestacoes.submit") as span:
        payload = get_json_body()
        receipt = current_app.gateway.submit_manifestacao(payload)

        span.set_attributes({
            "manifestacao.id": receipt["id"],
            "manifestacao.protocolo": receipt["protocolo"]
        })
        span.set_status(Status(StatusCode.OK))

        logger.info(
            "Manifestation submitted",
            extra={
                "manifestacao_id": receipt["id"],
                "protocolo": receipt["protocolo"],
                "anonimo": bool(payload.get("anonimo"))
            }
        )

        links = {
            'self': current_app.hal_formatter.builder.link_builder.build_link(
                f"/api/manifestacoes/protocolo/{receipt['protocolo']}", title="Consultar protocolo"
            )
        }
        return jsonify(current_app.hal_formatter.builder.build_resource_response(receipt, links)), 201


@manifestacoes_bp.get('/protocolo/<protocolo>')
@rate_limit('PUBLIC_LOOKUP_RATE_LIMIT', endpoint='public_lookup')
def get_by_protocolo(path: ProtocoloPath):
    """
    Look up a manifestation by protocol.

    Unknown and malformed protocols receive the same 404 response.
    """
    with tracer.start_as_current_span("manifestacoes.lookup") as span:
        view = current_app.gateway.lookup_by_protocolo(path.protocolo)
        span.set_status(Status(StatusCode.OK))
        return jsonify(current_app.hal_formatter.format_public_manifestacao(view)), 200


@manifestacoes_bp.get('/metadados')
def get_metadados():
    """Status, categories, attachment kinds and the transition table."""
    return jsonify(current_app.gateway.enumerations()), 200
