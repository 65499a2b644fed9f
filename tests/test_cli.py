"""
Tests for the command-line entry point.
"""
import json
import random

from tycoon_behavior.cli import main, phase_for, random_context, simulate
from tycoon_behavior.config import EnginePresets
from tycoon_behavior.engine import BehaviorEngine
from tycoon_behavior.types import BehaviorContext
from tycoon_behavior.validation import validate_context


class TestHelpers:
    def test_phase_for(self):
        assert [phase_for(r, 9) for r in (0, 3, 6, 8)] == ["early", "mid", "late", "late"]

    def test_random_context_is_valid(self):
        rng = random.Random(0)
        for r in range(20):
            data = random_context(rng, "bot_1", ["bot_1", "bot_2"], r, 20)
            assert validate_context(BehaviorContext.from_dict(data)).is_valid


class TestSimulate:
    def test_small_run(self):
        with BehaviorEngine(EnginePresets.deterministic_test(seed=1), clock=lambda: 0.0) as engine:
            report = simulate(engine, agents=3, rounds=5, seed=1)

        assert set(report) == {"bot_1", "bot_2", "bot_3"}
        for entry in report.values():
            assert entry["learning"]["systemMetrics"]["totalExperiences"] > 0
            assert entry["analysis"]["dominant_patterns"]

    def test_main_prints_json(self, capsys):
        assert main(["simulate", "--agents", "2", "--rounds", "3", "--seed", "5"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert set(report) == {"bot_1", "bot_2"}

    def test_no_command(self, capsys):
        assert main([]) == 2
