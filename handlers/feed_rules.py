"""
Feed rules and markup rules handlers
"""

from aiohttp import web

from clients.markup_rules import DEFAULT_PRICE_FIELDS, normalize_markup_rules
from exceptions import ControlPanelException
from handlers.base import BaseHandler
from managers.feed_rules_editor import FeedRulesEditor
from models import MarkupRulesConfig
from validators.feed_rules_validation import format_validation_errors, format_validation_warnings


class FeedRulesHandler(BaseHandler):
    """Rules, field mappings and markup tiers stored on a feed"""

    def _editor(self, request: web.Request) -> FeedRulesEditor:
        feed_id = self.get_int(request.match_info['feed_id'], 'feed_id')
        return FeedRulesEditor(
            self.get_app_component(request, 'feed_rules_api'),
            self.get_app_component(request, 'query_cache'),
            feed_id
        )

    async def get_rules(self, request: web.Request) -> web.Response:
        editor = self._editor(request)
        try:
            await editor.load()
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(editor.to_dict())

    async def save_rules(self, request: web.Request) -> web.Response:
        data = await self.get_request_json(request)
        if not isinstance(data.get('rules'), dict):
            return self.error_response('rules must be an object', 400, 'VALIDATION_ERROR')

        editor = self._editor(request)
        try:
            await editor.load()
            editor.set_rules(editor.feed_rules_api.normalize_feed_rules(data['rules']))
            if not editor.has_pending_changes:
                return self.success_response(editor.to_dict(), "No pending changes")

            pending = editor.pending_change_count
            await editor.save()
        except ControlPanelException as e:
            return self.exception_response(e)

        result = editor.to_dict()
        result['saved_changes'] = pending
        return self.success_response(result, "Rules saved")

    async def validate_rules(self, request: web.Request) -> web.Response:
        data = await self.get_request_json(request)
        feed_rules_api = self.get_app_component(request, 'feed_rules_api')
        validation = feed_rules_api.validate_rules(data.get('rules') or {})

        result = validation.to_dict()
        result['errors_text'] = format_validation_errors(validation.errors)
        result['warnings_text'] = format_validation_warnings(validation.errors)
        return self.success_response(result)

    async def get_field_mappings(self, request: web.Request) -> web.Response:
        feed_id = self.get_int(request.match_info['feed_id'], 'feed_id')
        try:
            mappings = await self.get_app_component(request, 'feed_rules_api').get_field_mappings(feed_id)
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(mappings)

    async def save_field_mappings(self, request: web.Request) -> web.Response:
        feed_id = self.get_int(request.match_info['feed_id'], 'feed_id')
        data = await self.get_request_json(request)
        if not isinstance(data.get('mappings'), list):
            return self.error_response('mappings must be a list', 400, 'VALIDATION_ERROR')

        try:
            feed = await self.get_app_component(request, 'feed_rules_api').update_field_mappings(
                feed_id, data['mappings']
            )
        except ControlPanelException as e:
            return self.exception_response(e)

        self.get_app_component(request, 'query_cache').invalidate(('feeds',))
        return self.success_response(feed, "Field mappings saved")

    async def list_markup(self, request: web.Request) -> web.Response:
        markup_api = self.get_app_component(request, 'markup_rules_api')
        try:
            feeds = await markup_api.get_all_feeds_with_markup()
        except ControlPanelException as e:
            return self.exception_response(e)

        result = []
        for feed in feeds:
            config = normalize_markup_rules(feed.get('markup_rules'))
            result.append({
                'id': feed.get('id'),
                'feed_key': feed.get('feed_key'),
                'label': feed.get('label'),
                'markup_rules': config.to_dict() if config else None,
            })
        return self.success_response(result)

    async def get_markup(self, request: web.Request) -> web.Response:
        feed_id = self.get_int(request.match_info['feed_id'], 'feed_id')
        try:
            config = await self.get_app_component(request, 'markup_rules_api').get_markup_rules(feed_id)
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(config.to_dict() if config else None)

    async def save_markup(self, request: web.Request) -> web.Response:
        feed_id = self.get_int(request.match_info['feed_id'], 'feed_id')
        data = await self.get_request_json(request)
        price_fields = data.get('priceFields')
        config = MarkupRulesConfig(
            rules=data.get('rules') or [],
            price_fields=list(DEFAULT_PRICE_FIELDS) if price_fields is None else price_fields
        )

        try:
            feed = await self.get_app_component(request, 'markup_rules_api').update_markup_rules(feed_id, config)
        except ControlPanelException as e:
            return self.exception_response(e)

        self.get_app_component(request, 'query_cache').invalidate(('feeds',))
        return self.success_response(feed, "Markup rules saved")
