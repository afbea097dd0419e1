"""
Activity Catalog - StickRPG

Every action the player can take. Each entry is scoped to a location,
costs a fixed number of in-game minutes and carries the deltas the
engine applies. Minigame entries only mark the place and duration; their
outcome comes from the resolvers in minigames.py.
"""

from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from .errors import ActivityNotFoundError
from .locations import LocationId, get_location


class ActivityId(str, Enum):
    """Closed set of activity identifiers."""
    SLEEP = 'sleep'
    SHOWER = 'shower'
    COOK_MEAL = 'cook-meal'
    ATTEND_CLASS = 'attend-class'
    STUDY = 'study'
    WORK_DISHWASHER = 'work-dishwasher'
    WORK_RETAIL = 'work-retail'
    WORK_INTERN = 'work-intern'
    BOXING_MATCH = 'boxing-match'
    BLACKJACK = 'blackjack'


class ActivityKind(str, Enum):
    STANDARD = 'standard'
    MINIGAME = 'minigame'


def _frozen(values: Optional[Dict[str, int]]) -> Mapping[str, int]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class Requirements:
    """Minimum attribute/skill values needed before an activity can run."""

    min_attributes: Mapping[str, int] = field(default_factory=lambda: _frozen(None))
    min_skills: Mapping[str, int] = field(default_factory=lambda: _frozen(None))


@dataclass(frozen=True)
class ActivityDefinition:
    """Static, read-only description of an activity."""

    id: ActivityId
    name: str
    minutes: int
    location_id: LocationId
    money_delta: int = 0
    needs_delta: Mapping[str, int] = field(default_factory=lambda: _frozen(None))
    attribute_delta: Mapping[str, int] = field(default_factory=lambda: _frozen(None))
    skill_delta: Mapping[str, int] = field(default_factory=lambda: _frozen(None))
    requirements: Requirements = field(default_factory=Requirements)
    kind: ActivityKind = ActivityKind.STANDARD

    @property
    def is_minigame(self) -> bool:
        return self.kind is ActivityKind.MINIGAME


def _activity(activity_id: ActivityId, name: str, minutes: int,
              location_id: LocationId, money_delta: int = 0,
              needs_delta=None, attribute_delta=None, skill_delta=None,
              min_attributes=None, min_skills=None,
              kind: ActivityKind = ActivityKind.STANDARD) -> ActivityDefinition:
    return ActivityDefinition(
        id=activity_id,
        name=name,
        minutes=minutes,
        location_id=location_id,
        money_delta=money_delta,
        needs_delta=_frozen(needs_delta),
        attribute_delta=_frozen(attribute_delta),
        skill_delta=_frozen(skill_delta),
        requirements=Requirements(
            min_attributes=_frozen(min_attributes),
            min_skills=_frozen(min_skills),
        ),
        kind=kind,
    )


# =============================================================================
# ACTIVITY ROSTER
# =============================================================================

ACTIVITIES: Dict[ActivityId, ActivityDefinition] = {
    activity.id: activity for activity in (

        # ---------------------------------------------------------------------
        # HOME
        # ---------------------------------------------------------------------

        _activity(
            ActivityId.SLEEP, 'Sleep', 8 * 60, LocationId.HOME,
            needs_delta={'energy': 40, 'stress': -10, 'hunger': -5},
        ),
        _activity(
            ActivityId.SHOWER, 'Shower', 30, LocationId.HOME,
            needs_delta={'hygiene': 35},
        ),
        _activity(
            ActivityId.COOK_MEAL, 'Cook Meal', 45, LocationId.HOME,
            money_delta=-8,
            needs_delta={'hunger': 35},
        ),

        # ---------------------------------------------------------------------
        # SCHOOL
        # ---------------------------------------------------------------------

        _activity(
            ActivityId.ATTEND_CLASS, 'Attend Class', 2 * 60, LocationId.SCHOOL,
            needs_delta={'stress': 5, 'energy': -10},
            attribute_delta={'intelligence': 1},
            skill_delta={'office': 2},
        ),
        _activity(
            ActivityId.STUDY, 'Study', 60, LocationId.SCHOOL,
            needs_delta={'stress': 3, 'energy': -5},
            attribute_delta={'intelligence': 1},
        ),

        # ---------------------------------------------------------------------
        # JOB DISTRICT
        # ---------------------------------------------------------------------

        _activity(
            ActivityId.WORK_DISHWASHER, 'Work Dishwasher', 4 * 60, LocationId.JOB_DISTRICT,
            money_delta=40,
            needs_delta={'stress': 5, 'energy': -15, 'hunger': -8},
            skill_delta={'fitness': 1},
        ),
        _activity(
            ActivityId.WORK_RETAIL, 'Work Retail', 4 * 60, LocationId.JOB_DISTRICT,
            money_delta=55,
            needs_delta={'stress': 6, 'energy': -15, 'hunger': -8},
            attribute_delta={'charisma': 1},
        ),
        _activity(
            ActivityId.WORK_INTERN, 'Work Intern', 4 * 60, LocationId.JOB_DISTRICT,
            money_delta=70,
            needs_delta={'stress': 7},
            skill_delta={'office': 2},
            min_attributes={'intelligence': 5},
        ),

        # ---------------------------------------------------------------------
        # BAR (minigames)
        # ---------------------------------------------------------------------

        _activity(
            ActivityId.BOXING_MATCH, 'Boxing Match', 60, LocationId.BAR,
            kind=ActivityKind.MINIGAME,
        ),
        _activity(
            ActivityId.BLACKJACK, 'Gambling: Blackjack-lite', 45, LocationId.BAR,
            kind=ActivityKind.MINIGAME,
        ),
    )
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_activity(activity_id) -> ActivityDefinition:
    """
    Look up an activity by id.

    Args:
        activity_id: An ActivityId or its string value

    Raises:
        ActivityNotFoundError: The id is not in the catalog
    """
    try:
        return ACTIVITIES[ActivityId(activity_id)]
    except ValueError:
        raise ActivityNotFoundError(activity_id) from None


def list_activities() -> List[ActivityDefinition]:
    """All activities in catalog order."""
    return list(ACTIVITIES.values())


def get_activities_for_location(location_id) -> List[ActivityDefinition]:
    """Activities available at a location, in catalog order."""
    location = get_location(location_id)
    return [a for a in ACTIVITIES.values() if a.location_id is location.id]
