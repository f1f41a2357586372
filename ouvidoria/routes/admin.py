# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Administrative manifestation endpoints.

Staff authentication happens upstream; the optional ``X-Actor`` header
names the staff member for the audit trail.
"""

from flask import jsonify, current_app
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel, Field
import logging

from ..models.requests import AddRespostaRequest, UpdateStatusRequest
from ..utils.request import get_actor, get_filters, get_json_body, get_pagination_params

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ManifestacaoPath(BaseModel):
    manifestacao_id: str = Field(..., description="Manifestation id")


admin_tag = Tag(name="Administração", description="Staff triage, responses and lifecycle")
admin_bp = APIBlueprint(
    'admin_manifestacoes',
    __name__,
    url_prefix='/api/admin/manifestacoes',
    abp_tags=[admin_tag]
)


@admin_bp.get('')
def list_manifestacoes():
    """
    List manifestations, newest first.

    Filters: ``status``, ``tipo``, ``orgao``. The first page returns a
    ``snapshot`` timestamp; pass it back to keep later pages stable while new
    submissions arrive.
    """
    with tracer.start_as_current_span("admin.manifestacoes.list") as span:
        filters = get_filters()
        pagination = get_pagination_params()

        page = current_app.gateway.list_manifestacoes(filters, pagination)

        span.set_attributes({
            "pagination.page": page["page"],
            "pagination.page_size": page["pageSize"],
            "pagination.total": page["total"]
        })
        span.set_status(Status(StatusCode.OK))

        response = current_app.hal_formatter.format_manifestacao_collection(
            page,
            filters.model_dump(exclude_none=True)
        )
        return jsonify(response), 200


@admin_bp.get('/<manifestacao_id>')
def get_manifestacao(path: ManifestacaoPath):
    """Full detail of one manifestation with lifecycle affordances."""
    with tracer.start_as_current_span(
        "admin.manifestacoes.get",
        attributes={"manifestacao.id": path.manifestacao_id}
    ) as span:
        view = current_app.gateway.get_manifestacao_detail(path.manifestacao_id)
        span.set_status(Status(StatusCode.OK))
        return jsonify(current_app.hal_formatter.format_manifestacao(view)), 200


@admin_bp.patch('/<manifestacao_id>/status')
def update_status(path: ManifestacaoPath):
    """
    Move a manifestation along the lifecycle.

    Body: ``{"status": "EM_ANALISE", "expectedStatus": "RECEBIDA"}``.
    Edges outside the transition table answer 422; a concurrent change
    answers 409.
    """
    with tracer.start_as_current_span(
        "admin.manifestacoes.update_status",
        attributes={"manifestacao.id": path.manifestacao_id}
    ) as span:
        body = UpdateStatusRequest.model_validate(get_json_body())
        actor = body.actor or get_actor()

        view = current_app.gateway.update_manifestacao_status(
            path.manifestacao_id,
            body.status,
            expected_status=body.expected_status,
            actor=actor
        )

        span.set_attribute("manifestacao.status", view["status"])
        span.set_status(Status(StatusCode.OK))

        logger.info(
            "Manifestation status updated",
            extra={
                "manifestacao_id": path.manifestacao_id,
                "status": view["status"],
                "actor": actor
            }
        )
        return jsonify(current_app.hal_formatter.format_manifestacao(view)), 200


@admin_bp.post('/<manifestacao_id>/respostas')
def add_resposta(path: ManifestacaoPath):
    """
    Append a staff response.

    Body: ``{"texto": "...", "gestorNome": "...", "status": "RESPONDIDA"}``.
    When ``status`` is present the response and the status change are
    applied together or not at all.
    """
    with tracer.start_as_current_span(
        "admin.manifestacoes.add_resposta",
        attributes={"manifestacao.id": path.manifestacao_id}
    ) as span:
        body = AddRespostaRequest.model_validate(get_json_body())
        actor = get_actor() or body.gestor_nome

        view = current_app.gateway.add_manifestacao_response(
            path.manifestacao_id,
            body.texto,
            gestor_nome=body.gestor_nome,
            target_status=body.status,
            actor=actor
        )

        span.set_attribute("manifestacao.respostas", len(view["respostas"]))
        span.set_status(Status(StatusCode.OK))

        logger.info(
            "Manifestation response added",
            extra={
                "manifestacao_id": path.manifestacao_id,
                "status": view["status"],
                "actor": actor
            }
        )
        return jsonify(current_app.hal_formatter.format_manifestacao(view)), 201


@admin_bp.get('/<manifestacao_id>/historico')
def get_historico(path: ManifestacaoPath):
    """Audit trail of one manifestation, oldest first."""
    history = current_app.gateway.get_manifestacao_history(path.manifestacao_id)
    return jsonify(current_app.hal_formatter.format_history(history)), 200
