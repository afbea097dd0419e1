"""
Location Catalog - StickRPG

Places the player can be. Activities are scoped to one of these and the
engine relocates the player whenever an activity or minigame runs.
"""

from typing import Dict, List
from dataclasses import dataclass, asdict
from enum import Enum

from .errors import LocationNotFoundError


class LocationId(str, Enum):
    """Closed set of location identifiers."""
    HOME = 'home'
    SCHOOL = 'school'
    JOB_DISTRICT = 'job-district'
    BAR = 'bar'


@dataclass(frozen=True)
class Location:
    """Immutable catalog entry for a place on the map."""

    id: LocationId
    name: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        data['id'] = self.id.value
        return data


# =============================================================================
# LOCATION ROSTER
# =============================================================================

LOCATIONS: Dict[LocationId, Location] = {
    LocationId.HOME: Location(
        id=LocationId.HOME,
        name='Home',
        description='A cramped apartment for rest, hygiene, and meals.',
    ),
    LocationId.SCHOOL: Location(
        id=LocationId.SCHOOL,
        name='School',
        description='Classes and study rooms for building knowledge.',
    ),
    LocationId.JOB_DISTRICT: Location(
        id=LocationId.JOB_DISTRICT,
        name='Job District',
        description='A busy district packed with shifts and paychecks.',
    ),
    LocationId.BAR: Location(
        id=LocationId.BAR,
        name='Bar',
        description='Loud music, risky bets, and underground fights.',
    ),
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_location(location_id) -> Location:
    """
    Look up a location by id.

    Args:
        location_id: A LocationId or its string value

    Raises:
        LocationNotFoundError: The id is not in the catalog
    """
    try:
        return LOCATIONS[LocationId(location_id)]
    except ValueError:
        raise LocationNotFoundError(location_id) from None


def list_locations() -> List[Location]:
    """All locations in catalog order."""
    return list(LOCATIONS.values())
