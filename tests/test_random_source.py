"""
Tests for random sources
"""

import pytest
from random_source import (
    ProcessRandomSource, SeededRandomSource, ScriptedRandomSource,
    RandomSourceExhausted, create_random_source,
)


class TestSources:
    """Test each source implementation."""

    def test_process_source_ranges(self):
        source = ProcessRandomSource()
        for _ in range(200):
            assert 0.0 <= source.random() < 1.0
            assert 1 <= source.randint(1, 11) <= 11

    def test_seeded_sources_replay(self):
        a = SeededRandomSource(seed=123)
        b = SeededRandomSource(seed=123)
        assert [a.randint(0, 100) for _ in range(20)] == [b.randint(0, 100) for _ in range(20)]
        assert a.random() == b.random()

    def test_scripted_source_replays_in_order(self):
        source = ScriptedRandomSource(floats=[0.25, 0.75], ints=[4])
        assert source.random() == 0.25
        assert source.randint(0, 10) == 4
        assert source.random() == 0.75
        assert source.call_count == 3

    def test_scripted_chance(self):
        source = ScriptedRandomSource(floats=[0.2, 0.5])
        assert source.chance(0.35) is True
        assert source.chance(0.35) is False

    def test_scripted_source_exhausted(self):
        source = ScriptedRandomSource()
        with pytest.raises(RandomSourceExhausted):
            source.random()
        with pytest.raises(RandomSourceExhausted):
            source.randint(0, 1)

    def test_scripted_int_must_fit_range(self):
        source = ScriptedRandomSource(ints=[12])
        with pytest.raises(ValueError):
            source.randint(1, 11)

    def test_queue_more_values(self):
        source = ScriptedRandomSource()
        source.queue_ints(7)
        source.queue_floats(0.5)
        assert source.randint(1, 11) == 7
        assert source.random() == 0.5


class TestFactory:
    """Test create_random_source."""

    def test_default_is_process(self):
        assert isinstance(create_random_source(), ProcessRandomSource)

    def test_seeded(self):
        source = create_random_source('seeded', seed=9)
        assert isinstance(source, SeededRandomSource)
        assert source.seed == 9

    def test_scripted(self):
        source = create_random_source('scripted', ints=[1])
        assert source.randint(1, 1) == 1

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            create_random_source('quantum')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
