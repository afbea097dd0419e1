"""
Minigames - StickRPG

Boxing and blackjack-lite. The functions here are pure given a random
source: they compute outcomes and rewards but never touch game state.
GameEngine applies the results (money, reputation, skills, injury,
relocation, time) in a single transition.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Any, List, Mapping, Optional, Sequence, Tuple

from random_source import RandomSource


# =============================================================================
# CONSTANTS
# =============================================================================

CARD_MIN = 1
CARD_MAX = 11
BLACKJACK_LIMIT = 21
DEALER_STANDS_ON = 17
DEALER_LUCK_WINDOW = (17, 20)
LUCK_EXTRA_DRAW_PER_POINT = 0.01
LUCK_EXTRA_DRAW_CAP = 0.08

BOXING_OPPONENT_PER_LEVEL = 6
BOXING_REWARD_MULTIPLIER_BASE = 1.6
BOXING_REWARD_MULTIPLIER_MIN = 0.6
BOXING_REWARD_MULTIPLIER_MAX = 1.6
BOXING_LOSS_COMBAT_XP = 1
BOXING_INJURY_CHANCE = 0.35


class Outcome(str, Enum):
    WIN = 'win'
    LOSS = 'loss'
    PUSH = 'push'


def _clamp(value, low, high):
    return min(max(value, low), high)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


# =============================================================================
# RESULT RECORDS
# =============================================================================

@dataclass(frozen=True)
class BoxingReward:
    money: int = 0
    reputation: int = 0
    combat_xp: int = 0


@dataclass(frozen=True)
class BoxingMatchResult:
    """Summary of one fight, returned to the caller for display."""

    result: Outcome
    win_chance: float
    player_power: int
    opponent_power: int
    reward: BoxingReward
    injury: bool

    @property
    def won(self) -> bool:
        return self.result is Outcome.WIN

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['result'] = self.result.value
        return data


@dataclass(frozen=True)
class BlackjackResult:
    """Summary of one settled hand, returned to the caller for display."""

    result: Outcome
    bet: int
    player_total: int
    dealer_total: int
    payout: int
    dealer_hand: Tuple[int, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['result'] = self.result.value
        data['dealer_hand'] = list(self.dealer_hand)
        return data


# =============================================================================
# BOXING
# =============================================================================

def player_level(attributes: Mapping[str, int], skills: Mapping[str, int]) -> int:
    """Overall level: (sum of attributes + sum of skills) // 8, at least 1."""
    return max(1, (sum(attributes.values()) + sum(skills.values())) // 8)


def reward_multiplier(win_chance: float) -> float:
    """Harder fights pay more."""
    return _clamp(BOXING_REWARD_MULTIPLIER_BASE - win_chance,
                  BOXING_REWARD_MULTIPLIER_MIN, BOXING_REWARD_MULTIPLIER_MAX)


def roll_boxing_match(rng: RandomSource, strength: int, combat: int,
                      luck: int, level: int) -> BoxingMatchResult:
    """
    Fight one opponent scaled to the player's level.

    Random draws happen in a fixed order: player luck bonus, opponent
    bonus, the win roll, and (only after a loss) the injury roll.

    Args:
        rng: Random source
        strength: Player strength attribute
        combat: Player combat skill
        luck: Player luck attribute
        level: Player level from player_level()

    Returns:
        BoxingMatchResult with the reward already computed
    """
    player_power = strength + combat + rng.randint(0, max(0, luck))
    opponent_spread = max(2, level * 2)
    opponent_power = level * BOXING_OPPONENT_PER_LEVEL + rng.randint(0, opponent_spread - 1)

    total_power = player_power + opponent_power
    win_chance = player_power / total_power if total_power > 0 else 0.0
    won = rng.chance(win_chance)
    multiplier = reward_multiplier(win_chance)

    if won:
        reward = BoxingReward(
            money=round_half_up(40 + 60 * multiplier),
            reputation=round_half_up(2 + 4 * multiplier),
            combat_xp=round_half_up(2 + 3 * multiplier),
        )
        injury = False
    else:
        reward = BoxingReward(combat_xp=BOXING_LOSS_COMBAT_XP)
        injury = rng.chance(BOXING_INJURY_CHANCE)

    return BoxingMatchResult(
        result=Outcome.WIN if won else Outcome.LOSS,
        win_chance=win_chance,
        player_power=player_power,
        opponent_power=opponent_power,
        reward=reward,
        injury=injury,
    )


# =============================================================================
# BLACKJACK
# =============================================================================

def draw_blackjack_card(rng: RandomSource) -> int:
    """One card: uniform 1-11, no suits."""
    return rng.randint(CARD_MIN, CARD_MAX)


def calculate_blackjack_total(hand: Sequence[int]) -> int:
    return sum(hand)


def luck_extra_draw_chance(luck: int) -> float:
    return _clamp(luck * LUCK_EXTRA_DRAW_PER_POINT, 0.0, LUCK_EXTRA_DRAW_CAP)


def play_dealer_hand(rng: RandomSource, luck: int) -> List[int]:
    """
    Dealer draws two, hits below 17, then may be forced into one extra
    card when standing on 17-20 (probability grows with player luck).
    """
    hand = [draw_blackjack_card(rng), draw_blackjack_card(rng)]
    while calculate_blackjack_total(hand) < DEALER_STANDS_ON:
        hand.append(draw_blackjack_card(rng))

    low, high = DEALER_LUCK_WINDOW
    chance = luck_extra_draw_chance(luck)
    if chance > 0 and low <= calculate_blackjack_total(hand) <= high:
        if rng.chance(chance):
            hand.append(draw_blackjack_card(rng))

    return hand


def settle_blackjack(player_total: int, dealer_total: int) -> Outcome:
    """A player bust always loses, whatever the dealer holds."""
    if player_total > BLACKJACK_LIMIT:
        return Outcome.LOSS
    if dealer_total > BLACKJACK_LIMIT or player_total > dealer_total:
        return Outcome.WIN
    if player_total < dealer_total:
        return Outcome.LOSS
    return Outcome.PUSH


def clamp_bet(bet: int, money: int) -> int:
    return max(1, min(int(bet), money))


def payout_for(outcome: Outcome, bet: int) -> int:
    if outcome is Outcome.WIN:
        return bet
    if outcome is Outcome.LOSS:
        return -bet
    return 0


# =============================================================================
# INTERACTIVE ROUND
# =============================================================================

class RoundPhase(str, Enum):
    IDLE = 'idle'
    PLAYER = 'player'
    RESOLVED = 'resolved'


class RoundPhaseError(Exception):
    """Raised when deal/hit/stand is called in the wrong phase."""
    pass


class BlackjackRound:
    """
    Drives one table session the way the shell does: deal, hit until
    standing or busting, then settle once through the engine.

    A bust settles immediately. After settlement another deal may start.
    """

    def __init__(self, engine, bet: int = 10):
        self.engine = engine
        self.bet = bet
        self.player_hand: List[int] = []
        self.result: Optional[BlackjackResult] = None
        self.phase = RoundPhase.IDLE

    @property
    def player_total(self) -> int:
        return calculate_blackjack_total(self.player_hand)

    @property
    def can_deal(self) -> bool:
        return self.phase in (RoundPhase.IDLE, RoundPhase.RESOLVED)

    @property
    def can_hit(self) -> bool:
        return self.phase is RoundPhase.PLAYER and self.player_total < BLACKJACK_LIMIT

    def deal(self) -> List[int]:
        if not self.can_deal:
            raise RoundPhaseError(f"Cannot deal during {self.phase.value} phase")
        self.player_hand = [self.engine.draw_blackjack_card(), self.engine.draw_blackjack_card()]
        self.result = None
        self.phase = RoundPhase.PLAYER
        return list(self.player_hand)

    def hit(self) -> int:
        if not self.can_hit:
            raise RoundPhaseError("Cannot hit now")
        card = self.engine.draw_blackjack_card()
        self.player_hand.append(card)
        if self.player_total > BLACKJACK_LIMIT:
            self._settle()
        return card

    def stand(self) -> BlackjackResult:
        if self.phase is not RoundPhase.PLAYER:
            raise RoundPhaseError(f"Cannot stand during {self.phase.value} phase")
        return self._settle()

    def _settle(self) -> BlackjackResult:
        self.result = self.engine.resolve_blackjack_hand(self.bet, self.player_hand)
        self.phase = RoundPhase.RESOLVED
        return self.result
