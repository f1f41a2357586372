# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for HAL link and problem document formatting.
"""

import pytest

from ouvidoria.services.hal import create_hal_formatter

BASE = 'https://ouvidoria.example.gov.br'


@pytest.fixture
def formatter():
    return create_hal_formatter(BASE + '/')


class TestAffordances:

    @pytest.mark.parametrize('status,transitions', [
        ('RECEBIDA', {'transition:EM_ANALISE', 'transition:ARQUIVADA'}),
        ('EM_ANALISE', {'transition:RESPONDIDA', 'transition:ARQUIVADA'}),
        ('RESPONDIDA', {'transition:ARQUIVADA'}),
        ('ARQUIVADA', set()),
    ])
    def test_transition_links_follow_table(self, formatter, status, transitions):
        body = formatter.format_manifestacao({'id': 'abc', 'status': status})

        links = body['_links']
        assert {rel for rel in links if rel.startswith('transition:')} == transitions
        assert {'self', 'collection', 'history', 'respond'} <= set(links)
        assert links['self']['href'] == f'{BASE}/api/admin/manifestacoes/abc'

    def test_public_links(self, formatter):
        body = formatter.format_public_manifestacao({'protocolo': '2025-000001', 'status': 'RECEBIDA'})

        assert body['_links'] == {
            'self': {
                'href': f'{BASE}/api/manifestacoes/protocolo/2025-000001',
                'method': 'GET',
                'title': 'Self'
            }
        }


class TestCollection:

    def _page(self, page, total_pages):
        return {
            'items': [{'id': 'abc', 'protocolo': '2025-000001'}],
            'total': total_pages * 10,
            'page': page,
            'pageSize': 10,
            'totalPages': total_pages,
            'snapshot': '2025-03-10T12:00:00+00:00'
        }

    def test_first_page(self, formatter):
        body = formatter.format_manifestacao_collection(self._page(1, 3), {'status': 'RECEBIDA'})

        assert set(body['_links']) == {'self', 'next', 'last'}
        assert 'status=RECEBIDA' in body['_links']['next']['href']
        assert 'snapshot=2025-03-10T12%3A00%3A00%2B00%3A00' in body['_links']['next']['href']
        assert body['snapshot'] == '2025-03-10T12:00:00+00:00'
        assert body['_embedded']['items'][0]['_links']['self']['href'] == f'{BASE}/api/admin/manifestacoes/abc'

    def test_middle_and_last_page(self, formatter):
        middle = formatter.format_manifestacao_collection(self._page(2, 3))
        last = formatter.format_manifestacao_collection(self._page(3, 3))

        assert set(middle['_links']) == {'self', 'first', 'prev', 'next', 'last'}
        assert set(last['_links']) == {'self', 'first', 'prev'}


class TestProblems:

    def test_validation_error(self, formatter):
        errors = [{'field': 'tipo', 'message': 'bad', 'type': 'enum'}]

        body = formatter.format_validation_error('Dados inválidos', '/api/manifestacoes', errors)

        assert body['type'] == 'https://api.ouvidoria.gov.br/problems/validation-error'
        assert body['status'] == 400
        assert body['errors'] == errors
        assert set(body['_links']) == {'help', 'schema'}

    def test_invalid_transition(self, formatter):
        body = formatter.format_invalid_transition_error('no', '/x', 'RESPONDIDA', 'EM_ANALISE')

        assert body['status'] == 422
        assert body['allowedTransitions'] == ['ARQUIVADA']
        assert body['_links']['metadata']['href'] == f'{BASE}/api/manifestacoes/metadados'

    def test_conflict_has_no_errors(self, formatter):
        body = formatter.format_conflict_error('stale', '/x')

        assert body['status'] == 409
        assert 'errors' not in body
