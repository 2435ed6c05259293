"""
Core modules for the Hazard Safety Service

This package contains the core business logic:
- coercion: Plain / wrapped numeric decoding of heatmap and location records
- intensity: Heatmap intensity model and rendering view
- geofencing: Haversine and degree-equivalent distances
- proximity: Safe / in-danger classification of tracked users
- publisher: Per-user safety verdict publishing
- document_store: Key-path document store backends
- safety_monitor: Classification passes over the latest heatmap snapshot
- emergency_alert: SOS alerts
"""

from .coercion import (
    coerce,
    parse_encoding,
    load_heatmap_points,
    parse_user_location
)

from .intensity import (
    intensity,
    render_heatmap
)

from .geofencing import (
    calculate_distance,
    degree_equivalent_distance,
    validate_coordinates
)

from .proximity import (
    classify,
    nearest_hazard
)

from .publisher import SafetyStatusPublisher

from .document_store import (
    DocumentStore,
    DocumentStoreError,
    InMemoryDocumentStore,
    SQLDocumentStore,
    document_path
)

from .safety_monitor import SafetyMonitor, SafetyPass

from .emergency_alert import EmergencyAlertService

__all__ = [
    # Coercion
    "coerce",
    "parse_encoding",
    "load_heatmap_points",
    "parse_user_location",

    # Intensity
    "intensity",
    "render_heatmap",

    # Geofencing
    "calculate_distance",
    "degree_equivalent_distance",
    "validate_coordinates",

    # Proximity
    "classify",
    "nearest_hazard",

    # Publishing and storage
    "SafetyStatusPublisher",
    "DocumentStore",
    "DocumentStoreError",
    "InMemoryDocumentStore",
    "SQLDocumentStore",
    "document_path",

    # Passes
    "SafetyMonitor",
    "SafetyPass",

    # Emergency
    "EmergencyAlertService"
]
