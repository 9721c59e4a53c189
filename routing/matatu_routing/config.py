"""
Configuration management for the matatu routing engine
"""

import os
from typing import Optional


class Config:
    """Configuration class for the matatu routing engine"""

    def __init__(self):
        # Raw GTFS-like tables (local path or http(s) URL)
        self.stops_source: str = os.getenv('STOPS_SOURCE', 'data/2019Stops.txt')
        self.routes_source: str = os.getenv('ROUTES_SOURCE', 'data/2019Routes.txt')
        self.fetch_timeout: float = float(os.getenv('FETCH_TIMEOUT', '10'))

        # Transfer zone catalogue; unset means the built-in Nairobi zones
        self.transfer_zones_file: Optional[str] = os.getenv('TRANSFER_ZONES_FILE')

        # Network building parameters (meters / degrees)
        self.same_stop_radius: float = float(os.getenv('SAME_STOP_RADIUS', '300'))
        self.walk_transfer_radius: float = float(os.getenv('WALK_TRANSFER_RADIUS', '800'))
        self.grid_size_deg: float = float(os.getenv('GRID_SIZE_DEG', '0.009'))

        # Journey scoring, in stop-equivalents
        self.transfer_penalty: float = float(os.getenv('TRANSFER_PENALTY', '10.0'))
        self.walk_meters_per_stop: float = float(os.getenv('WALK_METERS_PER_STOP', '200'))
        self.weak_hub_penalty: float = float(os.getenv('WEAK_HUB_PENALTY', '50.0'))
        self.zone_transfer_bonus: float = float(os.getenv('ZONE_TRANSFER_BONUS', '0'))
        self.min_direct_distance: float = float(os.getenv('MIN_DIRECT_DISTANCE', '0'))

        # API configuration
        self.host: str = os.getenv('HOST', '0.0.0.0')
        self.port: int = int(os.getenv('PORT', '5000'))
        self.debug: bool = os.getenv('DEBUG', 'False').lower() == 'true'

        # Logging
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO')
        self.log_file: Optional[str] = os.getenv('LOG_FILE')

    def validate(self):
        """Validate configuration"""
        if not self.stops_source or not self.routes_source:
            raise ValueError("Both stops and routes sources are required")

        if self.transfer_zones_file and not os.path.exists(self.transfer_zones_file):
            raise ValueError(f"Transfer zones file does not exist: {self.transfer_zones_file}")

        if self.same_stop_radius <= 0 or self.walk_transfer_radius <= 0:
            raise ValueError("Stop matching and walking radii must be positive")

        if self.grid_size_deg <= 0:
            raise ValueError("Grid size must be positive")

        if self.walk_meters_per_stop <= 0:
            raise ValueError("Walk meters per stop must be positive")

        if min(self.transfer_penalty, self.weak_hub_penalty, self.zone_transfer_bonus) < 0:
            raise ValueError("Penalties and bonuses cannot be negative")

    def get_source_config(self) -> dict:
        """Get configuration for the table sources"""
        return {
            'stops_source': self.stops_source,
            'routes_source': self.routes_source,
            'timeout': self.fetch_timeout
        }

    def get_network_config(self) -> dict:
        """Get configuration for RouteNetwork"""
        return {
            'grid_size': self.grid_size_deg
        }

    def get_planner_config(self) -> dict:
        """Get configuration for JourneyPlanner"""
        return {
            'transfer_penalty': self.transfer_penalty,
            'walk_meters_per_stop': self.walk_meters_per_stop,
            'weak_hub_penalty': self.weak_hub_penalty,
            'zone_transfer_bonus': self.zone_transfer_bonus,
            'min_direct_distance': self.min_direct_distance
        }

    def get_api_config(self) -> dict:
        """Get configuration for Flask API"""
        return {
            'host': self.host,
            'port': self.port,
            'debug': self.debug
        }


# Global configuration instance
config = Config()
