"""
Fraud heuristics.

- engine.FraudEngine: scores transactions and decides review/block
- velocity.VelocityTracker: per-user rolling windows and daily spend
- geolocation.GeoIPLookup: capability contract for IP geolocation providers
"""

from payment_guard.fraud.engine import FraudEngine
from payment_guard.fraud.geolocation import (
    GeoCheck,
    GeoIPLookup,
    HttpGeoIPLookup,
    NullGeoIPLookup,
    get_geoip_lookup,
)
from payment_guard.fraud.velocity import VelocitySnapshot, VelocityTracker

__all__ = [
    "FraudEngine",
    "GeoCheck",
    "GeoIPLookup",
    "HttpGeoIPLookup",
    "NullGeoIPLookup",
    "VelocitySnapshot",
    "VelocityTracker",
    "get_geoip_lookup",
]
