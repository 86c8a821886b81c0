"""
Collections API

Typesense collections and the time of the newest document in each.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from adapters.typesense_client import TypesenseClient
from exceptions import ControlPanelException, UpstreamServiceError

LAST_UPDATE_QUERY = {'q': '*', 'sort_by': 'updated_at:desc', 'per_page': '1'}
LEADING_INTEGER = re.compile(r'\s*([+-]?\d+)')

logger = logging.getLogger(__name__)


def parse_updated_at(value: Any) -> Optional[int]:
    """Epoch seconds of a document's ``updated_at``

    Numbers are kept, ISO strings are converted, other strings are
    read up to their first non-digit, anything else gives None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return None

    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp())
    except ValueError:
        pass

    match = LEADING_INTEGER.match(value)
    return int(match.group(1)) if match else None


def extract_last_updated_at(search_result: Dict[str, Any]) -> Optional[int]:
    hits = (search_result or {}).get('hits') or []
    if not hits or not hits[0].get('document'):
        return None
    return parse_updated_at(hits[0]['document'].get('updated_at'))


def last_update_path(collection_name: str) -> str:
    return f'/collections/{collection_name}/documents/search'


class CollectionsApi:

    def __init__(self, typesense: TypesenseClient):
        self.typesense = typesense

    async def get_all(self) -> List[Dict[str, Any]]:
        data = await self.typesense.request_json('GET', '/collections')
        if isinstance(data, dict) and 'collections' in data:
            return data['collections'] or []
        return data or []

    async def get_last_update(self, collection_name: str) -> Optional[int]:
        """None when the collection is missing or has no documents"""
        path = last_update_path(collection_name)
        response = await self.typesense.request('GET', path, params=LAST_UPDATE_QUERY)
        if response.status in (400, 404):
            return None
        if not response.ok:
            raise UpstreamServiceError('Typesense', 'GET', path, response.status, response.text)
        return extract_last_updated_at(response.json()) or None

    async def get_all_with_last_update(self) -> List[Dict[str, Any]]:
        collections = await self.get_all()

        async def with_last_update(collection: Dict[str, Any]) -> Dict[str, Any]:
            try:
                last_update = await self.get_last_update(collection['name'])
            except ControlPanelException as e:
                logger.error(f"Error fetching last update for {collection.get('name')}: {e}")
                last_update = None
            return dict(collection, last_updated_at=last_update)

        return list(await asyncio.gather(*(with_last_update(c) for c in collections)))
