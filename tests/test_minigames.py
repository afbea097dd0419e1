"""
Tests for minigames - boxing odds/rewards, blackjack rules, table flow
"""

import dataclasses

import pytest
from engine import GameEngine, GameState, Attributes, StatusEffects, LogType, START_MINUTES
from catalog import LocationId
from minigames import (
    Outcome, BlackjackRound, RoundPhase, RoundPhaseError,
    calculate_blackjack_total, settle_blackjack, luck_extra_draw_chance,
    player_level, reward_multiplier, round_half_up, draw_blackjack_card,
    play_dealer_hand, clamp_bet, BOXING_INJURY_CHANCE,
)
from random_source import ScriptedRandomSource, SeededRandomSource
from storage import MemorySaveStorage


def make_engine(floats=(), ints=(), state=None):
    return GameEngine(
        state=state,
        rng=ScriptedRandomSource(floats=floats, ints=ints),
        storage=MemorySaveStorage(),
    )


def with_player(**changes):
    state = GameState()
    return dataclasses.replace(state, player=dataclasses.replace(state.player, **changes))


class TestBoxingMath:
    """Test the pure boxing helpers."""

    def test_player_level(self):
        """Default player: 23 attribute points + 4 skill points -> level 3."""
        assert player_level({'a': 23}, {'b': 4}) == 3

    def test_player_level_minimum(self):
        assert player_level({'a': 0}, {'b': 0}) == 1

    def test_reward_multiplier_bounds(self):
        """Multiplier stays within [0.6, 1.6]."""
        assert reward_multiplier(0.0) == pytest.approx(1.6)
        assert reward_multiplier(1.0) == pytest.approx(0.6)
        assert reward_multiplier(0.5) == pytest.approx(1.1)

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(6.5) == 7
        assert round_half_up(5.4) == 5


class TestBoxingMatch:
    """Test resolve_boxing_match against the engine."""

    def test_win_pays_out(self):
        """Power 9 vs 18 and a low roll: an upset win pays well."""
        engine = make_engine(ints=[3, 0], floats=[0.1])
        result = engine.resolve_boxing_match()
        state = engine.get_state()

        assert result.result is Outcome.WIN
        assert result.player_power == 9
        assert result.opponent_power == 18
        assert result.win_chance == pytest.approx(1 / 3)
        assert (result.reward.money, result.reward.reputation, result.reward.combat_xp) == (116, 7, 6)
        assert result.injury is False

        assert state.player.money == 25 + 116
        assert state.player.reputation == 7
        assert state.player.skills.combat == 1 + 6
        assert state.location.id is LocationId.BAR
        assert state.time.total_minutes == START_MINUTES + 60
        assert state.log[-1].message == 'Boxing win! Earned $116 and 7 rep.'
        assert state.log[-1].type is LogType.REWARD

    def test_loss_gives_participation_xp(self):
        """A loss pays nothing but one combat point."""
        engine = make_engine(ints=[0, 5], floats=[0.9, 0.5])
        result = engine.resolve_boxing_match()
        state = engine.get_state()

        assert result.result is Outcome.LOSS
        assert (result.reward.money, result.reward.reputation, result.reward.combat_xp) == (0, 0, 1)
        assert result.injury is False
        assert state.player.money == 25
        assert state.player.reputation == 0
        assert state.player.skills.combat == 2
        assert state.player.status_effects.injury_until_day is None
        assert state.log[-1].message == 'Boxing loss. You still gain some combat experience.'

    def test_loss_can_injure(self):
        """Injury roll under 0.35 sets injury through tomorrow."""
        engine = make_engine(ints=[0, 5], floats=[0.9, 0.1])
        result = engine.resolve_boxing_match()
        state = engine.get_state()

        assert result.injury is True
        assert state.player.status_effects.injury_until_day == 2
        assert state.is_injured
        assert [e.message for e in state.log[-2:]] == [
            'Boxing loss. You still gain some combat experience.',
            'You picked up an injury. Energy recovery is slower today.',
        ]

    def test_injury_roll_at_threshold_misses(self):
        """A roll equal to BOXING_INJURY_CHANCE does not injure."""
        engine = make_engine(ints=[0, 5], floats=[0.9, BOXING_INJURY_CHANCE])
        result = engine.resolve_boxing_match()
        assert result.injury is False
        assert not engine.get_state().is_injured

    def test_injury_not_shortened(self):
        """A new injury never cuts an existing longer one short."""
        engine = make_engine(ints=[0, 5], floats=[0.9, 0.1],
                             state=with_player(status_effects=StatusEffects(injury_until_day=5)))
        engine.resolve_boxing_match()
        assert engine.get_state().player.status_effects.injury_until_day == 5

    def test_no_injury_roll_after_win(self):
        """Wins draw exactly one float."""
        rng = ScriptedRandomSource(ints=[3, 0], floats=[0.1])
        engine = GameEngine(rng=rng, storage=MemorySaveStorage())
        engine.resolve_boxing_match()
        assert [c['method'] for c in rng.call_history] == ['randint', 'randint', 'random']

    def test_random_ranges(self):
        """Luck bonus spans [0, luck]; opponent bonus spans [0, 2*level)."""
        rng = ScriptedRandomSource(ints=[0, 0], floats=[0.99, 0.99])
        engine = GameEngine(rng=rng, storage=MemorySaveStorage())
        engine.resolve_boxing_match()
        ranges = [(c['args']['low'], c['args']['high']) for c in rng.call_history
                  if c['method'] == 'randint']
        assert ranges == [(0, 3), (0, 5)]


class TestBlackjackRules:
    """Test the pure blackjack helpers."""

    def test_total_is_order_independent(self):
        """[10, 5, 7] totals 22 however it is ordered."""
        for hand in ([10, 5, 7], [7, 10, 5], [5, 7, 10]):
            assert calculate_blackjack_total(hand) == 22

    def test_bust_always_loses(self):
        """A player over 21 loses even against a busted dealer."""
        assert settle_blackjack(22, 17) is Outcome.LOSS
        assert settle_blackjack(22, 26) is Outcome.LOSS

    def test_settlement(self):
        assert settle_blackjack(18, 22) is Outcome.WIN
        assert settle_blackjack(20, 18) is Outcome.WIN
        assert settle_blackjack(17, 19) is Outcome.LOSS
        assert settle_blackjack(19, 19) is Outcome.PUSH

    def test_luck_extra_draw_chance_capped(self):
        assert luck_extra_draw_chance(3) == pytest.approx(0.03)
        assert luck_extra_draw_chance(20) == pytest.approx(0.08)
        assert luck_extra_draw_chance(-4) == 0.0

    def test_cards_in_range(self):
        rng = SeededRandomSource(seed=7)
        cards = [draw_blackjack_card(rng) for _ in range(500)]
        assert min(cards) >= 1
        assert max(cards) <= 11

    def test_dealer_hits_below_17(self):
        rng = ScriptedRandomSource(ints=[2, 3, 4, 10])
        assert play_dealer_hand(rng, luck=0) == [2, 3, 4, 10]

    def test_clamp_bet(self):
        assert clamp_bet(100, 25) == 25
        assert clamp_bet(0, 25) == 1
        assert clamp_bet(10, 25) == 10


class TestBlackjackHand:
    """Test resolve_blackjack_hand against the engine."""

    def test_win(self):
        """19 beats a dealer standing on 18."""
        engine = make_engine(ints=[10, 8], floats=[0.5])
        result = engine.resolve_blackjack_hand(10, [10, 9])
        state = engine.get_state()

        assert result.result is Outcome.WIN
        assert (result.bet, result.payout) == (10, 10)
        assert (result.player_total, result.dealer_total) == (19, 18)
        assert result.dealer_hand == (10, 8)
        assert state.player.money == 35
        assert state.location.id is LocationId.BAR
        assert state.time.total_minutes == START_MINUTES + 45
        assert state.log[-1].message == 'Blackjack win! You gain $10.'

    def test_loss_clamps_bet_to_money(self):
        """Betting more than you have risks everything, never more."""
        engine = make_engine(ints=[10, 9], floats=[0.5])
        result = engine.resolve_blackjack_hand(100, [10, 5])

        assert result.result is Outcome.LOSS
        assert result.bet == 25
        assert result.payout == -25
        assert engine.get_state().player.money == 0
        assert engine.get_state().log[-1].message == 'Blackjack loss. You lose $25.'

    def test_broke_player_money_stays_zero(self):
        engine = make_engine(ints=[10, 9], floats=[0.5], state=with_player(money=0))
        result = engine.resolve_blackjack_hand(10, [10, 5])
        assert result.bet == 1
        assert engine.get_state().player.money == 0

    def test_player_bust_loses(self):
        """Bust loses even when the dealer busts too."""
        engine = make_engine(ints=[10, 6, 10])
        result = engine.resolve_blackjack_hand(5, [10, 10, 5])
        assert result.dealer_total == 26
        assert result.result is Outcome.LOSS

    def test_push_returns_bet(self):
        engine = make_engine(ints=[10, 8], floats=[0.9])
        result = engine.resolve_blackjack_hand(10, [9, 9])
        assert result.result is Outcome.PUSH
        assert result.payout == 0
        assert engine.get_state().player.money == 25
        assert engine.get_state().log[-1].message == 'Blackjack push. Your bet is returned.'

    def test_luck_forces_extra_dealer_card(self):
        """A lucky roll makes the dealer draw past a standing 17."""
        engine = make_engine(ints=[10, 7, 5], floats=[0.01])
        result = engine.resolve_blackjack_hand(10, [10, 8])
        assert result.dealer_hand == (10, 7, 5)
        assert result.dealer_total == 22
        assert result.result is Outcome.WIN

    def test_no_luck_no_extra_card(self):
        engine = make_engine(ints=[10, 7], floats=[0.0],
                             state=with_player(attributes=Attributes(luck=0)))
        result = engine.resolve_blackjack_hand(10, [10, 8])
        assert result.dealer_hand == (10, 7)


class TestBlackjackRound:
    """Test the interactive deal/hit/stand flow."""

    def test_stand_settles(self):
        engine = make_engine(ints=[10, 9, 10, 7], floats=[0.9])
        table = BlackjackRound(engine, bet=5)

        assert table.deal() == [10, 9]
        assert table.phase is RoundPhase.PLAYER
        result = table.stand()

        assert result.result is Outcome.WIN
        assert table.phase is RoundPhase.RESOLVED
        assert table.can_deal
        assert engine.get_state().player.money == 30

    def test_bust_settles_immediately(self):
        engine = make_engine(ints=[10, 6, 9, 10, 8], floats=[0.5])
        table = BlackjackRound(engine, bet=5)
        table.deal()

        table.hit()

        assert table.player_total == 25
        assert table.phase is RoundPhase.RESOLVED
        assert table.result.result is Outcome.LOSS
        assert engine.get_state().player.money == 20

    def test_cannot_hit_on_21(self):
        engine = make_engine(ints=[10, 11])
        table = BlackjackRound(engine)
        table.deal()
        assert not table.can_hit
        with pytest.raises(RoundPhaseError):
            table.hit()

    def test_cannot_stand_before_deal(self):
        table = BlackjackRound(make_engine())
        with pytest.raises(RoundPhaseError):
            table.stand()

    def test_cannot_deal_mid_hand(self):
        table = BlackjackRound(make_engine(ints=[2, 3]))
        table.deal()
        assert not table.can_deal
        with pytest.raises(RoundPhaseError):
            table.deal()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
