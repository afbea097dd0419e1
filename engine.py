"""
StickRPG - Game Engine

Core game state and transition logic for the life simulation.

This module is the single source of truth for:
- GameState records and all player metrics
- Time advancement, need decay and day rollover
- Activity resolution and requirement checks
- Applying minigame outcomes (boxing, blackjack)
- Save/load persistence of the single save slot

Every transition builds a brand-new immutable GameState, commits it as
the current state and persists it. The rendering shell only ever sees
whole snapshots.
"""

from dataclasses import dataclass, asdict, field, fields, replace
from typing import Optional, Callable, Dict, Any, List, Mapping, Sequence, Tuple
from enum import Enum
import logging
import time
import uuid

from catalog import (
    ActivityDefinition,
    ActivityId,
    ActivityNotFoundError,
    CatalogError,
    Location,
    LocationId,
    get_activities_for_location as catalog_activities_for_location,
    get_activity,
    get_location,
    list_locations,
)
from messages import render_message
from minigames import (
    BlackjackResult,
    BoxingMatchResult,
    Outcome,
    calculate_blackjack_total,
    clamp_bet,
    draw_blackjack_card,
    payout_for,
    play_dealer_hand,
    player_level,
    roll_boxing_match,
    settle_blackjack,
)
from random_source import RandomSource, create_random_source
from storage import SaveStorage, StorageError, FileSaveStorage, STORAGE_CONFIG

logger = logging.getLogger(__name__)


# =============================================================================
# GAME CONSTANTS
# =============================================================================

STATE_VERSION = 1
LOG_LIMIT = 100

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR
START_MINUTES = 8 * MINUTES_PER_HOUR  # Day 1, 08:00

MIN_NEED = 0
MAX_NEED = 100

# Applied once per elapsed hour, in this order
HOURLY_DECAY = {
    'hunger': -2,
    'energy': -3,
    'hygiene': -1,
    'stress': 2,
}
HEALTH_LOSS_PER_CRITICAL_HOUR = 1

# need -> (direction, threshold). 'below' means value < threshold is critical.
CRITICAL_THRESHOLDS = {
    'hunger': ('below', 20),
    'energy': ('below', 15),
    'hygiene': ('below', 15),
    'stress': ('above', 85),
}

INJURY_ENERGY_FACTOR = 0.5
INJURY_DURATION_DAYS = 1

STARTING_MONEY = 25
STARTING_REPUTATION = 0
STARTING_INVENTORY_CAPACITY = 12


class LogType(str, Enum):
    INFO = 'info'
    EVENT = 'event'
    WARNING = 'warning'
    REWARD = 'reward'


def clamp(value, low, high):
    return min(max(value, low), high)


# =============================================================================
# STATE RECORDS
# All records are frozen. Transitions use dataclasses.replace().
# =============================================================================

@dataclass(frozen=True)
class Needs:
    """Six player vitals, each kept in [0, 100]."""

    energy: int = 80
    hunger: int = 60
    hygiene: int = 70
    stress: int = 15
    health: int = 90
    morale: int = 50

    def clamped(self) -> 'Needs':
        return Needs(**{
            f.name: clamp(int(getattr(self, f.name)), MIN_NEED, MAX_NEED)
            for f in fields(self)
        })

    def critical(self) -> List[str]:
        """Needs currently inside their critical zone, in threshold order."""
        zone = []
        for need, (direction, threshold) in CRITICAL_THRESHOLDS.items():
            value = getattr(self, need)
            if (direction == 'below' and value < threshold) or \
                    (direction == 'above' and value > threshold):
                zone.append(need)
        return zone

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class _StatBlock:
    """Unbounded integer stats that only grow through activities."""

    def with_deltas(self, deltas: Mapping[str, int]):
        if not deltas:
            return self
        return replace(self, **{
            key: getattr(self, key) + (value or 0) for key, value in deltas.items()
        })

    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class Attributes(_StatBlock):
    strength: int = 5
    agility: int = 5
    charisma: int = 5
    intelligence: int = 5
    luck: int = 3


@dataclass(frozen=True)
class Skills(_StatBlock):
    labor: int = 1
    fitness: int = 1
    hustle: int = 1
    office: int = 0
    combat: int = 1


@dataclass(frozen=True)
class InventoryItem:
    id: str
    name: str
    quantity: int = 1


@dataclass(frozen=True)
class Inventory:
    capacity: int = STARTING_INVENTORY_CAPACITY
    items: Tuple[InventoryItem, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'capacity': self.capacity,
            'items': [asdict(item) for item in self.items],
        }


@dataclass(frozen=True)
class StatusEffects:
    """Time-bounded modifiers. An injury lasts through injury_until_day."""

    injury_until_day: Optional[int] = None


@dataclass(frozen=True)
class PlayerState:
    money: int = STARTING_MONEY
    reputation: int = STARTING_REPUTATION
    needs: Needs = field(default_factory=Needs)
    attributes: Attributes = field(default_factory=Attributes)
    skills: Skills = field(default_factory=Skills)
    inventory: Inventory = field(default_factory=Inventory)
    status_effects: StatusEffects = field(default_factory=StatusEffects)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'money': self.money,
            'reputation': self.reputation,
            'needs': self.needs.to_dict(),
            'attributes': self.attributes.to_dict(),
            'skills': self.skills.to_dict(),
            'inventory': self.inventory.to_dict(),
            'status_effects': asdict(self.status_effects),
        }


@dataclass(frozen=True)
class TimeState:
    """Clock derived entirely from total_minutes."""

    day: int
    hour: int
    minute: int
    total_minutes: int

    @classmethod
    def from_total_minutes(cls, total_minutes: int) -> 'TimeState':
        total_minutes = max(0, int(total_minutes))
        day = total_minutes // MINUTES_PER_DAY + 1
        remaining = total_minutes % MINUTES_PER_DAY
        return cls(
            day=day,
            hour=remaining // MINUTES_PER_HOUR,
            minute=remaining % MINUTES_PER_HOUR,
            total_minutes=total_minutes,
        )


@dataclass(frozen=True)
class LogEntry:
    id: str
    message: str
    type: LogType
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'message': self.message,
            'type': self.type.value,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class GameState:
    """
    Complete game state snapshot.

    Owned by GameEngine and replaced wholesale on every transition, so a
    snapshot handed to a caller never changes underneath it.
    """

    version: int = STATE_VERSION
    player: PlayerState = field(default_factory=PlayerState)
    location: Location = field(default_factory=lambda: get_location(LocationId.HOME))
    time: TimeState = field(default_factory=lambda: TimeState.from_total_minutes(START_MINUTES))
    log: Tuple[LogEntry, ...] = ()

    @property
    def is_injured(self) -> bool:
        until = self.player.status_effects.injury_until_day
        return until is not None and self.time.day <= until

    def to_dict(self) -> Dict[str, Any]:
        """Serialize state to a JSON-ready dictionary."""
        return {
            'version': self.version,
            'player': self.player.to_dict(),
            'location': self.location.to_dict(),
            'time': asdict(self.time),
            'log': [entry.to_dict() for entry in self.log],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameState':
        """
        Deserialize state from a dictionary.

        Raises:
            SaveVersionError: The blob was written by another state version
            InvalidStateError: The blob is missing fields or has bad values
        """
        if not isinstance(data, dict):
            raise InvalidStateError("Save data is not an object")
        version = data.get('version')
        if isinstance(version, bool) or not isinstance(version, int) or version != STATE_VERSION:
            raise SaveVersionError(
                f"Save version {version!r} != {STATE_VERSION}"
            )

        try:
            player = data['player']
            status = player.get('status_effects') or {}
            injury_until_day = status.get('injury_until_day')
            inventory = player.get('inventory') or {}

            return cls(
                version=STATE_VERSION,
                player=PlayerState(
                    money=max(0, int(player['money'])),
                    reputation=int(player['reputation']),
                    needs=_int_record(Needs, player['needs']).clamped(),
                    attributes=_int_record(Attributes, player['attributes']),
                    skills=_int_record(Skills, player['skills']),
                    inventory=Inventory(
                        capacity=int(inventory.get('capacity', STARTING_INVENTORY_CAPACITY)),
                        items=tuple(
                            InventoryItem(
                                id=str(item['id']),
                                name=str(item['name']),
                                quantity=int(item.get('quantity', 1)),
                            )
                            for item in inventory.get('items', [])
                        ),
                    ),
                    status_effects=StatusEffects(
                        injury_until_day=None if injury_until_day is None else int(injury_until_day)
                    ),
                ),
                location=get_location(data['location']['id']),
                time=TimeState.from_total_minutes(data['time']['total_minutes']),
                log=tuple(
                    LogEntry(
                        id=str(entry['id']),
                        message=str(entry['message']),
                        type=LogType(entry['type']),
                        timestamp=int(entry['timestamp']),
                    )
                    for entry in data.get('log', [])
                )[-LOG_LIMIT:],
            )
        except (KeyError, TypeError, ValueError, OverflowError, AttributeError, CatalogError) as e:
            raise InvalidStateError(f"Malformed save data: {e!r}") from e


def _int_record(cls, values: Mapping[str, Any]):
    """Build a record of int fields, requiring every field to be present."""
    return cls(**{f.name: int(values[f.name]) for f in fields(cls)})


# =============================================================================
# NEEDS & TIME (pure functions)
# =============================================================================

def clamp_needs(needs: Needs) -> Needs:
    return needs.clamped()


def apply_need_deltas(needs: Needs, deltas: Optional[Mapping[str, int]] = None,
                      injured: bool = False) -> Needs:
    """
    Add optional per-need deltas, then clamp.

    While injured, a positive energy delta is halved (floored, minimum 1).
    """
    if not deltas:
        return needs

    energy_delta = deltas.get('energy', 0)
    if injured and energy_delta > 0:
        energy_delta = max(1, int(energy_delta * INJURY_ENERGY_FACTOR))

    return Needs(
        energy=needs.energy + energy_delta,
        hunger=needs.hunger + deltas.get('hunger', 0),
        hygiene=needs.hygiene + deltas.get('hygiene', 0),
        stress=needs.stress + deltas.get('stress', 0),
        health=needs.health + deltas.get('health', 0),
        morale=needs.morale + deltas.get('morale', 0),
    ).clamped()


def hour_ticks(start_minutes: int, minutes: int) -> int:
    """
    Whole clock hours crossed when advancing from start_minutes.

    Counting boundaries of the absolute clock (rather than minutes // 60
    per call) makes two short advances decay exactly like one long one.
    """
    end_minutes = max(0, start_minutes + minutes)
    return max(0, end_minutes // MINUTES_PER_HOUR - start_minutes // MINUTES_PER_HOUR)


def decay_needs(needs: Needs, ticks: int) -> Tuple[Needs, List[str]]:
    """
    Apply hourly decay tick by tick.

    Health drops on any tick that ends with a need in its critical zone.

    Returns:
        (needs after all ticks, needs that newly entered a critical zone)
    """
    if ticks <= 0:
        return needs, []

    critical_before = needs.critical()
    current = needs
    for _ in range(ticks):
        current = replace(current, **{
            need: getattr(current, need) + delta for need, delta in HOURLY_DECAY.items()
        })
        if current.critical():
            current = replace(current, health=current.health - HEALTH_LOSS_PER_CRITICAL_HOUR)
        current = current.clamped()

    crossed = [need for need in current.critical() if need not in critical_before]
    return current, crossed


def calculate_needs_after_minutes(needs: Needs, minutes: int,
                                  start_minutes: int = 0) -> Tuple[Needs, List[str]]:
    return decay_needs(needs, hour_ticks(start_minutes, minutes))


def check_requirements(player: PlayerState, activity: ActivityDefinition) -> List[str]:
    """Human-readable list of unmet requirements ('intelligence 5')."""
    unmet = []
    for block, required in ((player.attributes, activity.requirements.min_attributes),
                            (player.skills, activity.requirements.min_skills)):
        for key, threshold in required.items():
            if getattr(block, key, 0) < threshold:
                unmet.append(f"{key} {threshold}")
    return unmet


# =============================================================================
# GAME ENGINE CLASS
# Owns the canonical state. The only place transitions happen.
# =============================================================================

class GameEngine:
    """
    Game state store.

    Each public mutation builds a new GameState from the current one,
    persists it and only then makes it current. Nothing is applied
    partially: if a step raises, the previous state stays current.
    """

    def __init__(
        self,
        state: Optional[GameState] = None,
        rng: Optional[RandomSource] = None,
        storage: Optional[SaveStorage] = None,
        storage_key: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.state = state or GameState()
        self.rng = rng or create_random_source()
        self.storage = storage if storage is not None else FileSaveStorage()
        self.storage_key = storage_key or STORAGE_CONFIG['storage_key']
        self.clock = clock

    # -------------------------------------------------------------------------
    # SESSION & PERSISTENCE
    # -------------------------------------------------------------------------

    def get_state(self) -> GameState:
        """Return the current snapshot (immutable, safe to hold on to)."""
        return self.state

    def start_new_game(self) -> GameState:
        state = self._with_log(GameState(), render_message('new_game'), LogType.INFO)
        logger.info("Starting new game")
        return self._commit(state)

    def load_game(self) -> GameState:
        """
        Restore the saved game.

        Falls back to a new game when the slot is empty, unreadable or
        from another version. Never raises for bad save data.
        """
        try:
            data = self.storage.read(self.storage_key)
        except StorageError as e:
            logger.warning(f"Discarding unreadable save: {e}")
            return self.start_new_game()

        if data is None:
            logger.info("No save found, starting new game")
            return self.start_new_game()

        try:
            state = GameState.from_dict(data)
        except SaveVersionError as e:
            logger.warning(f"Discarding incompatible save: {e}")
            return self.start_new_game()
        except InvalidStateError as e:
            logger.warning(f"Discarding corrupt save: {e}")
            return self.start_new_game()

        self.state = state
        return state

    def save_game(self) -> None:
        self.storage.write(self.storage_key, self.state.to_dict())

    def add_log(self, message: str, log_type=LogType.INFO) -> GameState:
        """Append a narrated entry (keeps the most recent LOG_LIMIT) and persist."""
        return self._commit(self._with_log(self.state, message, LogType(log_type)))

    # -------------------------------------------------------------------------
    # TIME
    # -------------------------------------------------------------------------

    def advance_time(self, minutes: int) -> GameState:
        return self._commit(self._advance_time(self.state, minutes))

    def _advance_time(self, state: GameState, minutes: int) -> GameState:
        """
        Move the clock, decay needs per hour crossed and handle rollover.

        Log order: critical need warnings, one 'Day N begins.' per day
        boundary, then injury recovery.
        """
        previous = state.time
        ticks = hour_ticks(previous.total_minutes, minutes)
        needs, crossed = decay_needs(state.player.needs, ticks)

        state = replace(
            state,
            time=TimeState.from_total_minutes(previous.total_minutes + minutes),
            player=replace(state.player, needs=needs),
        )

        for need in crossed:
            state = self._with_log(state, render_message('critical_need', need=need), LogType.WARNING)

        for day in range(previous.day + 1, state.time.day + 1):
            state = self._with_log(state, render_message('day_begins', day=day), LogType.INFO)

        injury_until_day = state.player.status_effects.injury_until_day
        if state.time.day > previous.day and injury_until_day is not None \
                and state.time.day > injury_until_day:
            state = replace(state, player=replace(
                state.player, status_effects=replace(
                    state.player.status_effects, injury_until_day=None)))
            state = self._with_log(state, render_message('injury_healed'), LogType.INFO)

        return state

    # -------------------------------------------------------------------------
    # ACTIVITIES
    # -------------------------------------------------------------------------

    def perform_activity(self, activity_id) -> GameState:
        """
        Run a standard activity.

        Unknown ids and unmet requirements only add a warning entry.
        Minigame entries only announce themselves; their outcome comes
        from resolve_boxing_match / resolve_blackjack_hand.
        """
        try:
            activity = get_activity(activity_id)
        except ActivityNotFoundError as e:
            return self.add_log(
                render_message('unknown_activity', activity_id=e.key), LogType.WARNING)

        if activity.is_minigame:
            return self.add_log(render_message('minigame_started', name=activity.name))

        state = self.state
        unmet = check_requirements(state.player, activity)
        if unmet:
            return self.add_log(
                render_message('requirements_unmet', name=activity.name, unmet=unmet),
                LogType.WARNING,
            )

        player = state.player
        player = replace(
            player,
            attributes=player.attributes.with_deltas(activity.attribute_delta),
            skills=player.skills.with_deltas(activity.skill_delta),
            needs=apply_need_deltas(player.needs, activity.needs_delta, injured=state.is_injured),
            money=max(0, player.money + activity.money_delta),
        )
        # Resources change before time advances so decay sees post-activity values
        state = replace(state, location=get_location(activity.location_id), player=player)
        state = self._advance_time(state, activity.minutes)
        state = self._with_log(state, render_message('activity_completed', name=activity.name),
                               LogType.EVENT)

        logger.debug(f"Activity {activity.id.value} done at {state.time.total_minutes}")
        return self._commit(state)

    # -------------------------------------------------------------------------
    # MINIGAMES
    # -------------------------------------------------------------------------

    def resolve_boxing_match(self) -> BoxingMatchResult:
        state = self.state
        player = state.player
        outcome = roll_boxing_match(
            self.rng,
            strength=player.attributes.strength,
            combat=player.skills.combat,
            luck=player.attributes.luck,
            level=player_level(player.attributes.to_dict(), player.skills.to_dict()),
        )

        status = player.status_effects
        if outcome.injury:
            until = state.time.day + INJURY_DURATION_DAYS
            # A loss never shortens an injury that already runs longer
            if status.injury_until_day is None or status.injury_until_day < until:
                status = replace(status, injury_until_day=until)

        reward = outcome.reward
        player = replace(
            player,
            money=max(0, player.money + reward.money),
            reputation=player.reputation + reward.reputation,
            skills=player.skills.with_deltas({'combat': reward.combat_xp}),
            status_effects=status,
        )
        activity = get_activity(ActivityId.BOXING_MATCH)
        state = replace(state, location=get_location(activity.location_id), player=player)
        state = self._advance_time(state, activity.minutes)

        if outcome.won:
            state = self._with_log(
                state,
                render_message('boxing_win', money=reward.money, reputation=reward.reputation),
                LogType.REWARD,
            )
        else:
            state = self._with_log(state, render_message('boxing_loss'), LogType.WARNING)
        if outcome.injury:
            state = self._with_log(state, render_message('boxing_injury'), LogType.WARNING)

        self._commit(state)
        return outcome

    def draw_blackjack_card(self) -> int:
        return draw_blackjack_card(self.rng)

    @staticmethod
    def calculate_blackjack_total(hand: Sequence[int]) -> int:
        return calculate_blackjack_total(hand)

    def resolve_blackjack_hand(self, bet: int, player_hand: Sequence[int]) -> BlackjackResult:
        """
        Settle a hand the caller has finished drawing.

        The bet is clamped to [1, money]; the dealer plays out here.
        """
        state = self.state
        player = state.player
        safe_bet = clamp_bet(bet, player.money)

        dealer_hand = play_dealer_hand(self.rng, player.attributes.luck)
        player_total = calculate_blackjack_total(player_hand)
        dealer_total = calculate_blackjack_total(dealer_hand)
        result = settle_blackjack(player_total, dealer_total)
        payout = payout_for(result, safe_bet)

        activity = get_activity(ActivityId.BLACKJACK)
        state = replace(
            state,
            location=get_location(activity.location_id),
            player=replace(player, money=max(0, player.money + payout)),
        )
        state = self._advance_time(state, activity.minutes)

        if result is Outcome.WIN:
            state = self._with_log(state, render_message('blackjack_win', bet=safe_bet), LogType.REWARD)
        elif result is Outcome.LOSS:
            state = self._with_log(state, render_message('blackjack_loss', bet=safe_bet), LogType.WARNING)
        else:
            state = self._with_log(state, render_message('blackjack_push'), LogType.INFO)

        self._commit(state)
        return BlackjackResult(
            result=result,
            bet=safe_bet,
            player_total=player_total,
            dealer_total=dealer_total,
            payout=payout,
            dealer_hand=tuple(dealer_hand),
        )

    # -------------------------------------------------------------------------
    # CATALOG ACCESSORS
    # -------------------------------------------------------------------------

    def get_locations(self) -> List[Location]:
        return list_locations()

    def get_activities_for_location(self, location_id) -> List[ActivityDefinition]:
        return catalog_activities_for_location(location_id)

    # -------------------------------------------------------------------------
    # INTERNALS
    # -------------------------------------------------------------------------

    def _with_log(self, state: GameState, message: str, log_type: LogType) -> GameState:
        entry = LogEntry(
            id=uuid.uuid4().hex,
            message=message,
            type=log_type,
            timestamp=int(self.clock() * 1000),
        )
        return replace(state, log=(state.log + (entry,))[-LOG_LIMIT:])

    def _commit(self, state: GameState) -> GameState:
        # Persist first; a failed write leaves the previous snapshot current.
        self.storage.write(self.storage_key, state.to_dict())
        self.state = state
        return state


# =============================================================================
# EXCEPTIONS
# =============================================================================

class InvalidStateError(Exception):
    """Raised when serialized state cannot be turned into a GameState."""
    pass


class SaveVersionError(Exception):
    """Raised when a save blob carries another state version."""
    pass


# =============================================================================
# NEW GAME FACTORY
# =============================================================================

def new_game(seed: Optional[int] = None, storage: Optional[SaveStorage] = None) -> GameEngine:
    """Create an engine with a fresh, persisted starting state."""
    if seed is not None:
        rng = create_random_source('seeded', seed=seed)
    else:
        rng = create_random_source()
    engine = GameEngine(rng=rng, storage=storage)
    engine.start_new_game()
    return engine


# =============================================================================
# SELF CHECK
# =============================================================================

def run_time_system_checks() -> List[str]:
    """Verify the hourly decay rules. Returns failure messages (empty = ok)."""
    failures = []

    baseline = Needs(energy=50, hunger=50, hygiene=50, stress=50, health=50, morale=50)
    after_hour, _ = calculate_needs_after_minutes(baseline, 60)
    if after_hour.hunger != 48:
        failures.append("Expected hunger to drop by 2 per hour.")
    if after_hour.energy != 47:
        failures.append("Expected energy to drop by 3 per hour.")
    if after_hour.hygiene != 49:
        failures.append("Expected hygiene to drop by 1 per hour.")
    if after_hour.stress != 52:
        failures.append("Expected stress to increase by 2 per hour.")

    critical = Needs(energy=10, hunger=10, hygiene=10, stress=90, health=50, morale=50)
    after_critical, _ = calculate_needs_after_minutes(critical, 60)
    if after_critical.health != 49:
        failures.append("Expected health to drop when critical thresholds are met.")

    return failures


# =============================================================================
# MAIN ENTRY (for testing)
# =============================================================================

if __name__ == "__main__":
    from messages import render_status
    from storage import MemorySaveStorage

    logging.basicConfig(level=logging.INFO)

    engine = new_game(seed=42, storage=MemorySaveStorage())
    print(render_status(engine.get_state()))

    for activity_id in ('cook-meal', 'attend-class', 'work-intern', 'sleep'):
        engine.perform_activity(activity_id)
        print(f"\n{activity_id}: {engine.get_state().log[-1].message}")

    print(f"\nBoxing: {engine.resolve_boxing_match().to_dict()}")
    print(f"\nSelf-check failures: {run_time_system_checks()}")
    print()
    print(render_status(engine.get_state()))
