#!/usr/bin/env python3
"""
Matatu Routing Engine - Flask Web API Blueprint
Journey planning endpoints for the driver/passenger web app
"""

import asyncio
import logging
import time
from typing import Optional

from flask import Blueprint, Flask, jsonify, request
from flask_cors import CORS

from .config import config
from .core_route_service import MatatuRouteService
from .exceptions import (InvalidCoordinatesError, MatatuError, RouteNotFoundError,
                         ServiceNotReadyError, StopNotFoundError)
from .logger import logger

routing_bp = Blueprint('routing_bp', __name__)

# Global route service instance
route_service: Optional[MatatuRouteService] = None


def init_route_service(service: Optional[MatatuRouteService] = None) -> MatatuRouteService:
    """Load data and register the service the endpoints answer from"""
    global route_service
    try:
        service = service or MatatuRouteService.from_config(config)
        if not service.is_ready:
            asyncio.run(service.initialize())
        route_service = service
        logger.info("Matatu route service initialized successfully")
        return service
    except Exception as e:
        logger.error(f"Failed to initialize matatu route service: {e}")
        raise


def _service() -> MatatuRouteService:
    if route_service is None or not route_service.is_ready:
        raise ServiceNotReadyError("Route service not initialized")
    return route_service


@routing_bp.errorhandler(ServiceNotReadyError)
def handle_not_ready(e):
    return jsonify({'error': str(e)}), 503


@routing_bp.errorhandler(StopNotFoundError)
def handle_stop_not_found(e):
    return jsonify({'error': str(e)}), 404


@routing_bp.errorhandler(RouteNotFoundError)
def handle_route_not_found(e):
    return jsonify({'error': str(e)}), 404


@routing_bp.errorhandler(InvalidCoordinatesError)
def handle_invalid_coordinates(e):
    return jsonify({'error': str(e)}), 400


@routing_bp.errorhandler(MatatuError)
def handle_matatu_error(e):
    logger.error(f"Routing error: {e}")
    return jsonify({'error': str(e)}), 500


@routing_bp.route('/routing/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    service = _service()
    return jsonify({
        'status': 'healthy',
        'message': 'Matatu Routing Engine is running',
        'network': service.summary(),
        'timestamp': time.time()
    })


@routing_bp.route('/routing', methods=['GET'])
def index():
    """Root endpoint"""
    return jsonify({
        'name': 'Matatu Routing Engine',
        'version': '1.0.0',
        'description': 'Journey planning over the Nairobi matatu network',
        'endpoints': {
            'health': '/routing/health',
            'route': '/routing/route',
            'search_stops': '/routing/search-stops',
            'nearby': '/routing/nearby'
        }
    })


@routing_bp.route('/routing/search-stops', methods=['GET'])
def search_stops():
    """Search stops by partial name"""
    query = request.args.get('q', '')
    limit = request.args.get('limit', 10, type=int)
    stops = _service().search_stops(query, limit=limit)
    return jsonify({'stops': [stop.to_dict() for stop in stops]})


@routing_bp.route('/routing/nearby', methods=['GET'])
def nearby_stops():
    """Stops near a coordinate, nearest first"""
    lat = request.args.get('lat', type=float)
    lon = request.args.get('lon', type=float)
    radius = request.args.get('radius', 1000.0, type=float)
    if lat is None or lon is None:
        return jsonify({'error': 'lat and lon query parameters required'}), 400
    stops = _service().nearby_stops(lat, lon, radius)
    return jsonify({'stops': [stop.to_dict() for stop in stops]})


@routing_bp.route('/routing/route', methods=['POST'])
def route():
    """Journey between two stops given by id or name"""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'No data provided'}), 400
    origin = data.get('from')
    destination = data.get('to')
    if not origin or not destination:
        return jsonify({'error': 'Origin and destination stops required'}), 400

    start = time.time()
    journey = _service().find_journey_between(str(origin), str(destination))
    logger.log_route_request(str(origin), str(destination), (time.time() - start) * 1000,
                             journey is not None)

    if journey is None:
        raise RouteNotFoundError(f"No journey found from {origin} to {destination}")
    return jsonify(journey.to_dict())


def create_app(service: Optional[MatatuRouteService] = None) -> Flask:
    """Flask app with the routing blueprint registered"""
    app = Flask(__name__)
    CORS(app)
    init_route_service(service)
    app.register_blueprint(routing_bp)
    return app


def main():
    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))
    api_config = config.get_api_config()
    app = create_app()
    print(f"\n🚐 Matatu routing engine running at: http://{api_config['host']}:{api_config['port']}\n")
    app.run(host=api_config['host'], port=api_config['port'], debug=api_config['debug'])


if __name__ == '__main__':
    main()
