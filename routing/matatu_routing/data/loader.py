"""
Stops/routes table loading with load-once caching.

The per-route stop list is reconstructed from each route's long name, a
hyphen-delimited corridor description; the stop-sequence columns that some
dataset variants carry are too sparse to trust.
"""

import asyncio
import csv
import inspect
import io
import logging
import time
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..exceptions import DataSourceError
from ..models.transit import Route, Stop
from ..utils.stop_resolver import COMPOUND_NAMES, StopResolver, smart_split_route_name

logger = logging.getLogger(__name__)

STOP_COLUMNS = ['stop_id', 'stop_name', 'stop_lat', 'stop_lon']
ROUTE_COLUMNS = ['route_id', 'agency_id', 'route_short_name', 'route_long_name']


def _read_table(text: str, columns: List[str]) -> pd.DataFrame:
    """Read the leading columns of a comma-separated table, skipping its header row"""
    rows = list(csv.reader(io.StringIO(text.strip())))
    body = [row for row in rows[1:] if any(cell.strip() for cell in row)]
    # Extra columns are ignored; short rows are padded with empty cells
    padded = [[cell.strip() for cell in (row + [''] * len(columns))[:len(columns)]]
              for row in body]
    return pd.DataFrame(padded, columns=columns, dtype=str)


def parse_stops_table(text: str) -> List[Stop]:
    """Parse a raw stops table, dropping rows without finite coordinates"""
    df = _read_table(text, STOP_COLUMNS)
    if df.empty:
        return []

    lat = pd.to_numeric(df['stop_lat'], errors='coerce').astype(float)
    lon = pd.to_numeric(df['stop_lon'], errors='coerce').astype(float)
    valid = np.isfinite(lat) & np.isfinite(lon)

    dropped = int((~valid).sum())
    if dropped:
        logger.debug(f"Dropped {dropped} stop rows with invalid coordinates")

    df = df.assign(lat=lat, lon=lon)[valid]
    duplicated = df['stop_id'].duplicated(keep='first')
    if duplicated.any():
        logger.warning(f"Ignoring {int(duplicated.sum())} duplicate stop ids")
        df = df[~duplicated]

    return [
        Stop(id=row.stop_id, name=row.stop_name, lat=float(row.lat), lon=float(row.lon))
        for row in df.itertuples(index=False)
    ]


def parse_routes_table(text: str, stops: Sequence[Stop],
                       resolver: Optional[StopResolver] = None,
                       compound_names: Iterable[str] = COMPOUND_NAMES) -> List[Route]:
    """Parse a raw routes table, rebuilding each route's stops from its long name.

    Routes whose description resolves to no stop at all are left out.
    """
    resolver = resolver or StopResolver()
    compound_names = tuple(compound_names)
    df = _read_table(text, ROUTE_COLUMNS)
    if df.empty:
        return []

    duplicated = df['route_id'].duplicated(keep='first')
    if duplicated.any():
        logger.warning(f"Ignoring {int(duplicated.sum())} duplicate route ids")
        df = df[~duplicated]

    routes = []
    unresolved = 0
    for row in df.itertuples(index=False):
        route_stops = []
        used_stop_ids = set()
        for fragment in smart_split_route_name(row.route_long_name, compound_names,
                                               resolver.min_fragment_length):
            stop = resolver.resolve_by_name(fragment, stops)
            if stop and stop.id not in used_stop_ids:
                route_stops.append(stop)
                used_stop_ids.add(stop.id)

        if not route_stops:
            unresolved += 1
            logger.debug(f"Route {row.route_id} ({row.route_long_name!r}) resolved to no stops")
            continue

        routes.append(Route(
            id=row.route_id,
            short_name=row.route_short_name,
            long_name=row.route_long_name,
            stops=tuple(route_stops),
        ))

    if unresolved:
        logger.info(f"Dropped {unresolved} routes with no resolvable stops")
    return routes


class TransitDataStore:
    """Owns the stop and route master tables, parsed once and cached.

    Concurrent first callers share a single in-flight load instead of each
    triggering a parse. A source failure is logged and yields an empty list
    that is not cached, so the next call tries again.
    """

    def __init__(self, stops_source: Callable, routes_source: Callable,
                 resolver: Optional[StopResolver] = None,
                 compound_names: Iterable[str] = COMPOUND_NAMES):
        self.stops_source = stops_source
        self.routes_source = routes_source
        self.resolver = resolver or StopResolver()
        self.compound_names = tuple(compound_names)

        self._stops: Optional[List[Stop]] = None
        self._routes: Optional[List[Route]] = None
        self._stops_task: Optional[asyncio.Future] = None
        self._routes_task: Optional[asyncio.Future] = None
        self._generation = 0

    @property
    def is_loaded(self) -> bool:
        return self._stops is not None and self._routes is not None

    async def load_stops(self) -> List[Stop]:
        if self._stops is not None:
            return self._stops
        if not self._reusable(self._stops_task):
            self._stops_task = asyncio.ensure_future(self._load_stops())
        task = self._stops_task
        try:
            return await asyncio.shield(task)
        finally:
            if task.done() and self._stops_task is task:
                self._stops_task = None

    async def load_routes(self) -> List[Route]:
        if self._routes is not None:
            return self._routes
        if not self._reusable(self._routes_task):
            self._routes_task = asyncio.ensure_future(self._load_routes())
        task = self._routes_task
        try:
            return await asyncio.shield(task)
        finally:
            if task.done() and self._routes_task is task:
                self._routes_task = None

    @staticmethod
    def _reusable(task: Optional[asyncio.Future]) -> bool:
        # A load cancelled by a timeout, or left over from a closed event loop, is stale
        return (task is not None and not task.cancelled()
                and task.get_loop() is asyncio.get_running_loop())

    def invalidate(self):
        """Drop both caches so the next call re-parses the tables"""
        self._generation += 1
        self._stops = None
        self._routes = None
        self._stops_task = None
        self._routes_task = None
        logger.info("Route caches cleared - will reload on next request")

    async def _fetch(self, source: Callable, table: str) -> Optional[str]:
        try:
            text = source()
            if inspect.isawaitable(text):
                text = await text
            return text
        except DataSourceError as e:
            logger.error(f"Failed to load {table} table: {e}")
            return None

    async def _load_stops(self) -> List[Stop]:
        generation = self._generation
        start = time.time()
        text = await self._fetch(self.stops_source, 'stops')
        if text is None:
            return []

        stops = parse_stops_table(text)
        if generation == self._generation:
            self._stops = stops
        logger.info(f"Stops loaded: {len(stops)} in {(time.time() - start) * 1000:.1f}ms")
        return stops

    async def _load_routes(self) -> List[Route]:
        generation = self._generation
        start = time.time()
        stops = await self.load_stops()
        # Routes built on an uncached (failed) stops load must not be cached either
        stops_cached = self._stops is not None

        text = await self._fetch(self.routes_source, 'routes')
        if text is None:
            return []

        routes = parse_routes_table(text, stops, self.resolver, self.compound_names)
        if stops_cached and generation == self._generation:
            self._routes = routes
        logger.info(f"Routes loaded: {len(routes)} in {(time.time() - start) * 1000:.1f}ms")
        return routes
