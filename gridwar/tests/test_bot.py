"""
Tests for the bot system.

Tests:
- Baseline policies return legal commands
- The heuristic evaluator
- SkirmishBot decisions, attack budget and turn ending
- Personalities and roster creation
"""

import random

import pytest

from ..bots import (
    EvaluationWeights,
    FirstLegalPolicy,
    HeuristicEvaluator,
    PERSONALITIES,
    Personality,
    RaiderPolicy,
    RandomPolicy,
    SkirmishBot,
    create_bot_roster,
)
from ..bots.personality import BALANCED, create_random_personality
from ..bots.skirmish_bot import ATTACKS
from ..engine_core.action import Action, ActionType
from ..engine_core.action_generator import legal_actions
from ..engine_core.resources import ResourceLedger


def focused(**overrides) -> Personality:
    """Deterministic personality: never random, always the top scorer."""
    params = dict(name="Test", randomness=0.0, risk_tolerance=0.0)
    params.update(overrides)
    return Personality(**params)


class TestBaselinePolicies:
    """Tests for RandomPolicy, FirstLegalPolicy and RaiderPolicy."""

    def test_random_policy_picks_a_legal_action(self, coordinator):
        actions = legal_actions(coordinator)
        decision = RandomPolicy(seed=42).select_action(coordinator, actions)
        assert decision.action in actions
        assert decision.evaluated_actions == len(actions)

    def test_random_policy_is_reproducible(self, coordinator):
        actions = legal_actions(coordinator)
        a = RandomPolicy(seed=5).select_action(coordinator, actions)
        b = RandomPolicy(seed=5).select_action(coordinator, actions)
        assert a.action is b.action

    def test_first_legal_policy(self, coordinator):
        actions = legal_actions(coordinator)
        decision = FirstLegalPolicy().select_action(coordinator, actions)
        assert decision.action is actions[0]

    @pytest.mark.parametrize("policy", [RandomPolicy(), FirstLegalPolicy(), RaiderPolicy()])
    def test_no_actions_raises(self, coordinator, policy):
        with pytest.raises(ValueError):
            policy.select_action(coordinator, [])

    def test_raider_attacks_once_then_ends_turn(self, coordinator):
        raider = RaiderPolicy(seed=3)

        first = raider.select_action(coordinator, legal_actions(coordinator))
        assert first.action.action_type == ActionType.ATTACK_UNIT
        assert coordinator.apply(first.action).success

        second = raider.select_action(coordinator, legal_actions(coordinator))
        assert second.action.action_type == ActionType.END_TURN

    def test_raider_ends_turn_without_targets(self, coordinator):
        coordinator.players[1].units.clear()
        decision = RaiderPolicy().select_action(coordinator, legal_actions(coordinator))
        assert decision.action.action_type == ActionType.END_TURN

    def test_default_name(self):
        assert FirstLegalPolicy().get_name() == "FirstLegalPolicy"


class TestHeuristicEvaluator:
    """Tests for position and command scoring."""

    def test_symmetric_start(self, coordinator):
        evaluation = HeuristicEvaluator().evaluate(coordinator, 0)
        assert evaluation.player_scores[0] == pytest.approx(evaluation.player_scores[1])
        assert evaluation.total_score == pytest.approx(0.2 * evaluation.player_scores[0])

    def test_winner_bonus(self, coordinator):
        coordinator.players[1].units.clear()
        coordinator.players[1].buildings.clear()
        coordinator.advance_turn()

        evaluator = HeuristicEvaluator()
        assert evaluator.evaluate(coordinator, 0).total_score > 1000
        assert evaluator.evaluate(coordinator, 1).total_score < -900

    def test_killing_blow_scores_highest(self, coordinator):
        evaluator = HeuristicEvaluator()
        player = coordinator.current_player
        coordinator.players[1].units[0].health = 3

        kill = evaluator.evaluate_action(coordinator, Action.attack_unit(0, 1, 1, 1), player)
        chip = evaluator.evaluate_action(coordinator, Action.attack_unit(0, 1, 1, 2), player)
        assert kill == pytest.approx(40.0 + 10)
        assert chip == pytest.approx(5 * 1.5)

    def test_end_turn_scores_the_baseline(self, coordinator):
        evaluator = HeuristicEvaluator(EvaluationWeights(end_turn_value=7.0))
        score = evaluator.evaluate_action(coordinator, Action.end_turn(0), coordinator.current_player)
        assert score == 7.0

    def test_no_training_when_food_is_short(self, coordinator):
        player = coordinator.current_player
        player.ledger = ResourceLedger()
        score = HeuristicEvaluator().evaluate_action(
            coordinator, Action.train_unit(0, "soldier"), player,
        )
        assert score == 0.0

    def test_first_camp_beats_a_second(self, coordinator):
        evaluator = HeuristicEvaluator()
        player = coordinator.current_player
        action = Action.construct_building(0, "training_camp")

        first = evaluator.evaluate_action(coordinator, action, player)
        coordinator.apply(action)
        second = evaluator.evaluate_action(coordinator, action, player)
        assert first == 30.0
        assert second == 0.0

    def test_moving_towards_the_enemy_scores(self, coordinator):
        evaluator = HeuristicEvaluator()
        player = coordinator.current_player
        closer = evaluator.evaluate_action(coordinator, Action.move_unit(0, 1, 0, 1), player)
        sideways = evaluator.evaluate_action(coordinator, Action.move_unit(0, 3, 3, 0), player)
        assert closer == pytest.approx(6.0)
        assert sideways <= 0.0


class TestSkirmishBot:
    """Tests for the heuristic bot."""

    def test_takes_the_killing_blow(self, coordinator):
        coordinator.players[1].units[0].health = 3
        bot = SkirmishBot(player_id=0, personality=focused(), rng=random.Random(1))

        decision = bot.select_action(coordinator, legal_actions(coordinator))
        assert decision.action.action_type == ActionType.ATTACK_UNIT
        assert decision.action.payload.target_unit_id == 1
        assert decision.best_score == pytest.approx(50.0)

    def test_attack_budget_per_turn(self, coordinator):
        bot = SkirmishBot(
            player_id=0, personality=focused(attacks_per_turn=1), rng=random.Random(1),
        )
        coordinator.players[1].units[0].health = 3

        first = bot.select_action(coordinator, legal_actions(coordinator))
        assert first.action.action_type in ATTACKS
        coordinator.apply(first.action)

        second = bot.select_action(coordinator, legal_actions(coordinator))
        assert second.action.action_type not in ATTACKS

    def test_budget_resets_next_turn(self, coordinator):
        bot = SkirmishBot(
            player_id=0, personality=focused(attacks_per_turn=1), rng=random.Random(1),
        )
        coordinator.players[1].units[0].health = 3
        bot.select_action(coordinator, legal_actions(coordinator))
        assert bot._attacks_this_turn == 1

        coordinator.advance_turn()
        coordinator.advance_turn()
        bot.select_action(coordinator, legal_actions(coordinator))
        assert bot._turn_key == (2, 0)

    def test_ends_turn_when_nothing_beats_the_baseline(self, coordinator):
        coordinator.current_player.ledger = ResourceLedger()
        personality = focused(
            attacks_per_turn=0,
            weights=EvaluationWeights(approach_value=0.0),
        )
        bot = SkirmishBot(player_id=0, personality=personality, rng=random.Random(1))

        decision = bot.select_action(coordinator, legal_actions(coordinator))
        assert decision.action.action_type == ActionType.END_TURN

    def test_every_decision_is_legal(self, session_coordinator):
        bot = SkirmishBot(player_id=0, personality=PERSONALITIES["chaotic"], rng=random.Random(9))
        for _ in range(10):
            actions = legal_actions(session_coordinator)
            decision = bot.select_action(session_coordinator, actions)
            assert decision.action in actions
            assert session_coordinator.apply(decision.action).success
            if decision.action.action_type == ActionType.END_TURN:
                break

    def test_no_actions_raises(self, coordinator):
        with pytest.raises(ValueError):
            SkirmishBot(player_id=0).select_action(coordinator, [])

    def test_defaults(self):
        bot = SkirmishBot(player_id=2)
        assert bot.personality is BALANCED
        assert bot.evaluator.weights is BALANCED.weights
        assert bot.get_name() == "SkirmishBot(Balanced)"


class TestPersonalities:
    """Tests for predefined and generated personalities."""

    def test_predefined(self):
        assert set(PERSONALITIES) == {"balanced", "aggressive", "builder", "chaotic"}
        assert PERSONALITIES["aggressive"].attacks_per_turn > PERSONALITIES["builder"].attacks_per_turn
        assert PERSONALITIES["chaotic"].randomness > PERSONALITIES["balanced"].randomness

    def test_random_personality_is_seeded(self):
        a = create_random_personality(seed=11)
        b = create_random_personality(seed=11)
        assert a.weights == b.weights
        assert a.attacks_per_turn == b.attacks_per_turn

    def test_zero_variance_keeps_the_base(self):
        clone = create_random_personality(name="Clone", variance=0.0, seed=1)
        assert clone.weights == BALANCED.weights
        assert clone.description == "Random variation of Balanced"

    def test_variations_stay_in_range(self):
        for seed in range(20):
            p = create_random_personality(seed=seed, variance=1.0)
            assert 0.0 <= p.risk_tolerance <= 1.0
            assert 0.0 <= p.randomness <= 1.0
            assert p.attacks_per_turn >= 1


class TestBotRoster:
    """Tests for create_bot_roster."""

    def test_cycles_personalities(self):
        roster = create_bot_roster([1, 2, 3], ["aggressive", "builder"], seed=3)
        assert [bot.personality.name for bot in roster.values()] == [
            "Aggressive", "Builder", "Aggressive",
        ]
        assert all(roster[pid].player_id == pid for pid in roster)

    def test_seeded_rosters_match(self):
        a = create_bot_roster([1], seed=8)
        b = create_bot_roster([1], seed=8)
        assert a[1].rng.random() == b[1].rng.random()

    def test_default_personalities(self):
        roster = create_bot_roster([0, 1, 2, 3])
        assert [bot.personality for bot in roster.values()] == list(PERSONALITIES.values())
