"""
Static catalogs for StickRPG.

Locations and the location-scoped activities the player can perform.
Both are defined once at import time and never mutated.
"""

from .errors import CatalogError, LocationNotFoundError, ActivityNotFoundError

from .locations import (
    LocationId,
    Location,
    LOCATIONS,
    get_location,
    list_locations,
)

from .activities import (
    ActivityId,
    ActivityKind,
    ActivityDefinition,
    Requirements,
    ACTIVITIES,
    get_activity,
    list_activities,
    get_activities_for_location,
)

__all__ = [
    'CatalogError',
    'LocationNotFoundError',
    'ActivityNotFoundError',
    'LocationId',
    'Location',
    'LOCATIONS',
    'get_location',
    'list_locations',
    'ActivityId',
    'ActivityKind',
    'ActivityDefinition',
    'Requirements',
    'ACTIVITIES',
    'get_activity',
    'list_activities',
    'get_activities_for_location',
]
