"""
Rules editor handlers

Page-level endpoints of the pricing/origin/scoring/filter rules editor.
Edits are buffered in a server-side session until an explicit save.
"""

from typing import Any, Dict

from aiohttp import web

from exceptions import BatchSaveError, ControlPanelException, ValidationException
from handlers.base import BaseHandler
from managers.rule_ordering import apply_drag_reorder, apply_max_price_change
from managers.rules_state import RulesBatchSaver, RulesState
from utils.json_generator import get_combined_config
from validators.rule_validation import validate_rule_config


class RulesEditorHandler(BaseHandler):
    """Rules editing sessions, combined config and feed/rule type catalog"""

    CHANGE_ACTIONS = (
        'update', 'create', 'delete', 'start_edit', 'cancel_edit',
        'change_field', 'save_edit', 'mark_manual_edit',
    )

    def _rules_api(self, request: web.Request):
        return self.get_app_component(request, 'rules_api')

    def _sessions(self, request: web.Request):
        return self.get_app_component(request, 'rules_sessions')

    def _catalog(self, request: web.Request):
        return self.get_app_component(request, 'catalog_manager')

    def _state(self, request: web.Request) -> RulesState:
        return self._sessions(request).get(request.match_info['session_id'])

    def _view(self, session_id: str, state: RulesState) -> Dict[str, Any]:
        view = state.to_dict()
        view['session_id'] = session_id
        view['invalid_rules'] = []
        for rule in state.get_display_rules():
            valid, error = validate_rule_config(rule.rule_type, rule.config)
            if not valid:
                view['invalid_rules'].append({'id': rule.id, 'error': error})
        return view

    async def open_session(self, request: web.Request) -> web.Response:
        data = await self.get_request_json(request)
        error = self.validate_required_fields(data, ['feed_key', 'rule_type'])
        if error:
            return self.error_response(error, 400, 'VALIDATION_ERROR')

        tenant_id = self.get_tenant_id(request, data)
        feed_key = data['feed_key']
        rule_type = data['rule_type']

        try:
            rules = await self._rules_api(request).get_by_feed(feed_key, tenant_id, rule_type)
        except ControlPanelException as e:
            return self.exception_response(e)

        template_name = self._catalog(request).templates.template_for(rule_type)
        state = RulesState(feed_key, rule_type, tenant_id, rules, template_name=template_name)
        session_id = self._sessions(request).create(state)

        return self.success_response(self._view(session_id, state), "Rules session opened")

    async def get_session(self, request: web.Request) -> web.Response:
        try:
            state = self._state(request)
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(self._view(request.match_info['session_id'], state))

    async def close_session(self, request: web.Request) -> web.Response:
        closed = self._sessions(request).close(request.match_info['session_id'])
        return self.success_response({'closed': closed})

    async def stage_change(self, request: web.Request) -> web.Response:
        """Apply one editing action to the session

        Body: ``{action, ...}`` where action is one of update, create,
        delete, start_edit, cancel_edit, change_field, save_edit or
        mark_manual_edit.
        """
        data = await self.get_request_json(request)
        action = data.get('action')
        if action not in self.CHANGE_ACTIONS:
            return self.error_response(
                f"action must be one of: {', '.join(self.CHANGE_ACTIONS)}", 400, 'VALIDATION_ERROR'
            )

        try:
            state = self._state(request)

            if action == 'update':
                rule_id = self.get_int(data.get('rule_id'), 'rule_id')
                state.stage_update(rule_id, data.get('patch') or {})
            elif action == 'create':
                state.stage_create(
                    name=data.get('name'),
                    config=data.get('config'),
                    priority=data.get('priority'),
                    enabled=data.get('enabled', True),
                    notes=data.get('notes', ''),
                )
            elif action == 'delete':
                state.stage_delete(self.get_int(data.get('rule_id'), 'rule_id'))
            elif action == 'start_edit':
                state.start_edit(self.get_int(data.get('rule_id'), 'rule_id'))
            elif action == 'cancel_edit':
                state.cancel_edit()
            elif action == 'change_field':
                if not data.get('field'):
                    raise ValidationException('field is required')
                state.change_config_in_row(data['field'], data.get('value'))
            elif action == 'save_edit':
                state.save_edit()
            elif action == 'mark_manual_edit':
                state.mark_manual_edit(self.get_int(data.get('rule_id'), 'rule_id'))

        except ControlPanelException as e:
            return self.exception_response(e)

        return self.success_response(self._view(request.match_info['session_id'], state))

    async def reorder(self, request: web.Request) -> web.Response:
        data = await self.get_request_json(request)
        error = self.validate_required_fields(data, ['active_id', 'over_id'])
        if error:
            return self.error_response(error, 400, 'VALIDATION_ERROR')

        try:
            state = self._state(request)
        except ControlPanelException as e:
            return self.exception_response(e)

        moved = apply_drag_reorder(
            state, self.get_int(data['active_id'], 'active_id'), self.get_int(data['over_id'], 'over_id')
        )
        view = self._view(request.match_info['session_id'], state)
        view['moved'] = moved
        return self.success_response(view)

    async def change_max_price(self, request: web.Request) -> web.Response:
        """Set a pricing row's max price and chain the next row's min price"""
        data = await self.get_request_json(request)
        error = self.validate_required_fields(data, ['rule_id', 'max_price'])
        if error:
            return self.error_response(error, 400, 'VALIDATION_ERROR')

        rule_id = self.get_int(data['rule_id'], 'rule_id')
        max_price = data['max_price']
        if isinstance(max_price, bool) or not isinstance(max_price, (int, float)):
            return self.error_response('max_price must be a number', 400, 'VALIDATION_ERROR')

        try:
            state = self._state(request)
            if state.editing_rule_id == rule_id:
                state.change_config_in_row('max_price', max_price)
            else:
                rule = state.get_rule(rule_id)
                state.stage_update(rule_id, {'config': dict(rule.config or {}, max_price=max_price)})
        except ControlPanelException as e:
            return self.exception_response(e)

        next_rule = apply_max_price_change(state, rule_id, max_price)
        view = self._view(request.match_info['session_id'], state)
        view['chained_rule_id'] = next_rule.id if next_rule else None
        return self.success_response(view)

    async def save(self, request: web.Request) -> web.Response:
        try:
            state = self._state(request)
            counts = await RulesBatchSaver(self._rules_api(request)).save(state)
        except BatchSaveError as e:
            self.logger.error(f"Saving rules session failed: {e.message}")
            return self.exception_response(e)
        except ControlPanelException as e:
            return self.exception_response(e)

        if sum(counts.values()) == 0:
            message = "No pending changes"
        else:
            message = "Changes saved"
        view = self._view(request.match_info['session_id'], state)
        view['saved'] = counts
        return self.success_response(view, message)

    async def get_combined_config(self, request: web.Request) -> web.Response:
        feed_key = request.query.get('feed_key')
        if not feed_key:
            return self.error_response('feed_key is required', 400, 'VALIDATION_ERROR')

        tenant_id = self.get_tenant_id(request)
        try:
            rules = await self._rules_api(request).get_by_feed(feed_key, tenant_id)
        except ControlPanelException as e:
            return self.exception_response(e)

        return self.success_response(get_combined_config(rules, feed_key))

    async def get_catalog(self, request: web.Request) -> web.Response:
        tenant_id = self.get_tenant_id(request)
        catalog = self._catalog(request)
        try:
            feeds = await catalog.get_feed_keys(tenant_id)
            rule_types = await catalog.get_rule_types(tenant_id)
        except ControlPanelException as e:
            return self.exception_response(e)

        return self.success_response({
            'feeds': feeds,
            'rule_types': [
                {'name': t, 'template': catalog.templates.template_for(t)} for t in rule_types
            ],
        })

    async def add_feed(self, request: web.Request) -> web.Response:
        data = await self.get_request_json(request)
        tenant_id = self.get_tenant_id(request, data)
        try:
            feed_key = await self._catalog(request).add_feed(tenant_id, data.get('feed_key', ''))
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response({'selected_feed': feed_key}, f'Feed "{feed_key}" added')

    async def copy_feed(self, request: web.Request) -> web.Response:
        data = await self.get_request_json(request)
        tenant_id = self.get_tenant_id(request, data)
        source_feed = request.match_info['feed_key']
        try:
            result = await self._catalog(request).copy_feed(
                tenant_id, source_feed, data.get('target_feed', '')
            )
        except ControlPanelException as e:
            return self.exception_response(e)

        return self.success_response(
            {'selected_feed': result.target_feed, 'copied': result.copied}, result.message
        )

    async def delete_feed(self, request: web.Request) -> web.Response:
        feed_key = request.match_info['feed_key']
        tenant_id = self.get_tenant_id(request)
        try:
            selected = await self._catalog(request).delete_feed(
                tenant_id, feed_key, request.query.get('selected')
            )
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response({'selected_feed': selected}, f'Feed "{feed_key}" removed successfully.')

    async def add_rule_type(self, request: web.Request) -> web.Response:
        data = await self.get_request_json(request)
        tenant_id = self.get_tenant_id(request, data)
        try:
            rule_type = await self._catalog(request).add_rule_type(
                tenant_id, data.get('rule_type', ''), data.get('template') or 'generic'
            )
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response({'selected_rule_type': rule_type}, f'Rule type "{rule_type}" added')

    async def delete_rule_type(self, request: web.Request) -> web.Response:
        rule_type = request.match_info['rule_type']
        tenant_id = self.get_tenant_id(request)
        try:
            selected = await self._catalog(request).delete_rule_type(
                tenant_id, rule_type, request.query.get('selected')
            )
        except ControlPanelException as e:
            return self.exception_response(e)
        return self.success_response(
            {'selected_rule_type': selected}, f'Rule type "{rule_type}" removed successfully.'
        )
