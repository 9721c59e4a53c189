"""
Table sources: the collaborators that retrieve raw stops/routes text.

A source is any zero-argument callable returning the table text, either
directly or as an awaitable. The data store never cares where text comes from.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import requests

from ..exceptions import DataSourceError

logger = logging.getLogger(__name__)

STOPS_HEADER = 'stop_id,stop_name,stop_lat,stop_lon,location_type,parent_station'
ROUTES_HEADER = 'route_id,agency_id,route_short_name,route_long_name,route_type'


class StaticTableSource:
    """Serves a table already held in memory"""

    def __init__(self, text: str):
        self.text = text

    def __call__(self) -> str:
        return self.text


class FileTableSource:
    """Reads a table from the local filesystem"""

    def __init__(self, path: str, encoding: str = 'utf-8-sig'):
        self.path = Path(path)
        self.encoding = encoding

    async def __call__(self) -> str:
        if not self.path.is_file():
            raise DataSourceError(f"Table file not found: {self.path}")
        try:
            return await asyncio.to_thread(self.path.read_text, encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise DataSourceError(f"Failed to read {self.path}: {e}") from e


class HttpTableSource:
    """Fetches a table over HTTP; falls back to a header-only table on failure"""

    def __init__(self, url: str, fallback_header: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.fallback_header = fallback_header
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self) -> str:
        resp = self.session.get(self.url, timeout=self.timeout)
        resp.raise_for_status()
        return resp.text

    async def __call__(self) -> str:
        try:
            return await asyncio.to_thread(self._get)
        except requests.RequestException as e:
            logger.error(f"Error fetching {self.url}: {e}")
            return self.fallback_header


def make_table_source(location: str, fallback_header: str, timeout: float = 10.0):
    """Pick an HTTP or file source for a configured location"""
    if location.startswith(('http://', 'https://')):
        return HttpTableSource(location, fallback_header, timeout=timeout)
    return FileTableSource(location)
