"""
Monitoring dashboard handler
"""

from aiohttp import web

from exceptions import ControlPanelException
from handlers.base import BaseHandler
from monitors.dashboard import ScheduleFilters


class DashboardHandler(BaseHandler):

    async def get_dashboard(self, request: web.Request) -> web.Response:
        """Page view model: snapshot, filter options, filtered and alert rows, totals"""
        query = self.get_query_params(request)
        filters = ScheduleFilters.from_query(query)
        refresh = query.get('refresh', '').lower() in ('1', 'true', 'yes')

        dashboard = self.get_app_component(request, 'monitoring_dashboard')
        try:
            view = await dashboard.build_view(filters, refresh=refresh)
        except ControlPanelException as e:
            return self.exception_response(e)

        return self.success_response(view)
