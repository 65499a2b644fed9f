"""
Tests for the rolling decision history.
"""
from tycoon_behavior.behavior.history import DecisionHistory
from tycoon_behavior.behavior.patterns import BehaviorDecision, builtin_patterns


def decision(pattern, confidence=0.5, round=0):
    return BehaviorDecision(pattern=pattern, actions=[], confidence=confidence, reasoning="", round=round)


class TestDecisionHistory:
    def test_capped_fifo(self):
        pattern = builtin_patterns()[0]
        history = DecisionHistory(limit=100)
        for i in range(150):
            history.append(decision(pattern, round=i))

        assert len(history) == 100
        assert history.all()[0].round == 50
        assert history.all()[-1].round == 149

    def test_recent(self):
        pattern = builtin_patterns()[0]
        history = DecisionHistory()
        for i in range(5):
            history.append(decision(pattern, round=i))
        assert [d.round for d in history.recent(2)] == [3, 4]
        assert history.recent(0) == []

    def test_for_pattern(self):
        aggressive, conservative = builtin_patterns()[:2]
        history = DecisionHistory()
        for i in range(15):
            history.append(decision(aggressive, round=i))
            history.append(decision(conservative, round=i))

        picked = history.for_pattern("aggressive", limit=10)
        assert len(picked) == 10
        assert all(d.pattern.id == "aggressive" for d in picked)
        assert picked[-1].round == 14
