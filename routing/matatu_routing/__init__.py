__title__ = 'matatu_routing'
__version__ = '1.0.0'
__author__ = 'Matatu Routing Team'
__license__ = 'MIT'
__copyright__ = 'Copyright 2024 Matatu Routing Team'

__all__ = ['core_route_service', 'MatatuRouteService', 'config', 'logger', 'exceptions']

# Set default logging handler to avoid "No handler found" warnings.
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .core_route_service import MatatuRouteService  # noqa: E402
