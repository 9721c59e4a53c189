"""
Custom exceptions for the matatu routing engine
"""

class MatatuError(Exception):
    """Base exception for the matatu routing engine"""
    pass


class DataSourceError(MatatuError):
    """Raised when a raw stops/routes table cannot be retrieved"""
    pass


class StopNotFoundError(MatatuError):
    """Raised when a stop id or name does not match any known stop"""
    pass


class RouteNotFoundError(MatatuError):
    """Raised when no journey is found between origin and destination"""
    pass


class InvalidCoordinatesError(MatatuError):
    """Raised when coordinates are invalid or out of bounds"""
    pass


class ServiceNotReadyError(MatatuError):
    """Raised when the route service is queried before its data is loaded"""
    pass
