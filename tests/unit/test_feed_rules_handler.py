import json
import sys
from pathlib import Path

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from clients import FeedRulesApi, MarkupRulesApi
from handlers.feed_rules import FeedRulesHandler
from managers.query_cache import QueryCache


class _FakeFeeds:
    def __init__(self, feed=None):
        self.feed = feed or {'id': 1, 'rules': {}}
        self.updates = []

    async def get_by_id(self, feed_id):
        return dict(self.feed)

    async def update(self, feed_id, data):
        self.updates.append((feed_id, data))
        self.feed.update(data)
        return dict(self.feed)


def _app(test_config, feeds):
    app = web.Application()
    app['feed_rules_api'] = FeedRulesApi(feeds)
    app['markup_rules_api'] = MarkupRulesApi(feeds)
    app['query_cache'] = QueryCache(test_config)
    return app


def _handler(body):
    handler = FeedRulesHandler()

    async def get_request_json(_request):
        return body

    handler.get_request_json = get_request_json
    return handler


def _request(app, method, path):
    return make_mocked_request(method, path, app=app, match_info={'feed_id': '1'})


def _body(response):
    return json.loads(response.body)


@pytest.mark.asyncio
async def test_markup_with_string_price_is_rejected(test_config):
    feeds = _FakeFeeds()
    app = _app(test_config, feeds)

    response = await _handler({'rules': [{'percent': 5, 'minPrice': '10', 'maxPrice': 20}]}).save_markup(
        _request(app, 'PUT', '/feeds/1/markup-rules')
    )

    assert response.status == 400
    body = _body(response)
    assert body['error_code'] == 'VALIDATION_ERROR'
    assert body['details']['errors'] == ['Rule 1: Min price must be a number']
    assert feeds.updates == []


@pytest.mark.asyncio
async def test_markup_with_default_fields_is_stored_as_list(test_config):
    feeds = _FakeFeeds()
    app = _app(test_config, feeds)
    tiers = [{'percent': 5, 'minPrice': 0, 'maxPrice': 20}]

    response = await _handler({'rules': tiers}).save_markup(_request(app, 'PUT', '/feeds/1/markup-rules'))

    assert response.status == 200
    assert feeds.updates == [(1, {'markup_rules': tiers})]


@pytest.mark.asyncio
async def test_validate_reports_non_object_entries(test_config):
    app = _app(test_config, _FakeFeeds())

    response = await _handler({'rules': {'filters': ['oops']}}).validate_rules(
        _request(app, 'POST', '/feeds/1/rules/validate')
    )

    assert response.status == 200
    data = _body(response)['data']
    assert data['valid'] is False
    assert data['errors'] == [{'field': 'filters[0]', 'message': 'Filter must be an object', 'type': 'error'}]
    assert data['errors_text'] == '• filters[0]: Filter must be an object'


@pytest.mark.asyncio
async def test_save_with_list_valued_shard_priority_is_rejected(test_config):
    feeds = _FakeFeeds()
    app = _app(test_config, feeds)
    shard_rule = {'name': 'lab', 'shardKey': 'lab', 'priority': [1],
                  'conditions': [{'field': 'lab', 'operator': 'eq', 'value': 'GIA'}]}

    response = await _handler({'rules': {'shardRules': [shard_rule, 'x']}}).save_rules(
        _request(app, 'PUT', '/feeds/1/rules')
    )

    assert response.status == 400
    errors = _body(response)['details']['errors']
    assert 'shardRules[0].priority: Priority must be a positive number' in errors
    assert 'shardRules[1]: Shard rule must be an object' in errors
    assert feeds.updates == []
