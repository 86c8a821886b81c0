import json
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from adapters.http_client import UpstreamResponse
from adapters.typesense_client import TypesenseClient
from clients.collections import CollectionsApi, extract_last_updated_at, parse_updated_at
from handlers.collections import CollectionsHandler


def _stub_send(client, responses):
    """Answer requests from a ``path -> UpstreamResponse`` map"""
    sent = []

    async def send(method, url, **kwargs):
        sent.append((method, url, kwargs))
        path = url[len(client.base_url):]
        return responses[path]

    client._send = send
    return sent


def _request(path, typesense, match_info=None):
    app = web.Application()
    app['service_registry'] = SimpleNamespace(typesense=typesense)
    return make_mocked_request('GET', path, app=app, match_info=match_info or {})


def _body(response):
    return json.loads(response.body)


def test_parse_updated_at():
    assert parse_updated_at(1700000000) == 1700000000
    assert parse_updated_at('2024-01-01T00:00:00Z') == 1704067200
    assert parse_updated_at('2024-01-01T00:00:00') == 1704067200
    assert parse_updated_at(None) is None
    assert parse_updated_at(True) is None
    assert parse_updated_at('not a date') is None
    assert parse_updated_at('12.5') == 12
    assert parse_updated_at(' 42 seconds') == 42


def test_extract_last_updated_at_without_hits():
    assert extract_last_updated_at({'hits': []}) is None
    assert extract_last_updated_at({}) is None
    assert extract_last_updated_at({'hits': [{'document': {'updated_at': 42}}]}) == 42


@pytest.mark.asyncio
async def test_get_all_unwraps_collections_key(test_config):
    client = TypesenseClient(test_config)
    _stub_send(client, {'/collections': UpstreamResponse(200, '{"collections": [{"name": "diamonds"}]}')})

    assert await CollectionsApi(client).get_all() == [{'name': 'diamonds'}]


@pytest.mark.asyncio
async def test_last_update_of_missing_collection_is_none(test_config):
    client = TypesenseClient(test_config)
    sent = _stub_send(client, {
        '/collections/gone/documents/search': UpstreamResponse(404, '{"message": "Not Found"}'),
    })

    assert await CollectionsApi(client).get_last_update('gone') is None
    assert sent[0][2]['params'] == {'q': '*', 'sort_by': 'updated_at:desc', 'per_page': '1'}
    assert sent[0][2]['headers']['X-TYPESENSE-API-KEY'] == 'ts-secret-key-456'


@pytest.mark.asyncio
async def test_get_all_with_last_update_tolerates_per_collection_failures(test_config):
    client = TypesenseClient(test_config)
    _stub_send(client, {
        '/collections': UpstreamResponse(200, '[{"name": "diamonds"}, {"name": "gems"}]'),
        '/collections/diamonds/documents/search': UpstreamResponse(
            200, '{"hits": [{"document": {"updated_at": 1700000000}}]}'
        ),
        '/collections/gems/documents/search': UpstreamResponse(500, 'boom'),
    })

    result = await CollectionsApi(client).get_all_with_last_update()

    assert result == [
        {'name': 'diamonds', 'last_updated_at': 1700000000},
        {'name': 'gems', 'last_updated_at': None},
    ]


@pytest.mark.asyncio
async def test_collections_handler_reports_auth_failure(test_config):
    client = TypesenseClient(test_config)
    _stub_send(client, {'/collections': UpstreamResponse(401, 'Forbidden')})

    response = await CollectionsHandler().get_collections(_request('/api/collections', client))

    assert response.status == 401
    body = _body(response)
    assert body['error'] == 'Typesense authentication failed'
    assert 'hint' in body


@pytest.mark.asyncio
async def test_collections_handler_reports_missing_configuration(test_config):
    test_config.typesense.api_key = ''
    client = TypesenseClient(test_config)

    response = await CollectionsHandler().get_collections(_request('/api/collections', client))

    assert response.status == 500
    body = _body(response)
    assert body['error'] == 'Typesense configuration missing'
    assert body['details'] == 'Missing environment variables: TYPESENSE_SEARCH_X_TYPESENSE_API_KEY'


@pytest.mark.asyncio
async def test_last_update_handler(test_config):
    client = TypesenseClient(test_config)
    _stub_send(client, {
        '/collections/diamonds/documents/search': UpstreamResponse(200, '{"hits": []}'),
    })

    response = await CollectionsHandler().get_last_update(
        _request('/api/collections/diamonds/last-update', client, {'name': 'diamonds'})
    )

    assert _body(response) == {'last_updated_at': None}


@pytest.mark.asyncio
async def test_connection_test_masks_key(test_config):
    client = TypesenseClient(test_config)
    _stub_send(client, {'/collections': UpstreamResponse(200, '[]', reason='OK')})

    response = await CollectionsHandler().test_connection(_request('/api/collections/test', client))

    body = _body(response)
    assert body['success'] is True
    assert body['url'] == 'https://typesense.test/collections'
    assert body['headersSent']['x-typesense-api-key'] == 'ts-secre...'
    assert body['response'] == []


@pytest.mark.asyncio
async def test_connection_test_without_configuration(test_config):
    test_config.typesense.url = ''
    client = TypesenseClient(test_config)

    response = await CollectionsHandler().test_connection(_request('/api/collections/test', client))

    assert _body(response) == {'error': 'Missing configuration', 'hasUrl': False, 'hasKey': True}
