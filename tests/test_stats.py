"""Tests for tspbench.stats."""
import math

import numpy as np
import pytest

from tspbench.errors import BenchError, EmptyInputError, InsufficientSamplesError
from tspbench.model import SampleStats
from tspbench.stats import mean, sample_std_dev, summarize_samples


class TestMean:
    """Średnia arytmetyczna."""

    def test_exact_for_representable_inputs(self):
        assert mean([1, 2, 3, 4]) == 2.5

    def test_single_sample(self):
        assert mean([7]) == 7.0

    def test_accepts_generators_and_floats(self):
        assert mean(x / 2 for x in [1, 2, 3]) == 1.0

    def test_empty_raises(self):
        with pytest.raises(EmptyInputError):
            mean([])

    def test_empty_error_is_bench_and_value_error(self):
        with pytest.raises(BenchError):
            mean([])
        with pytest.raises(ValueError):
            mean([])


class TestSampleStdDev:
    """Odchylenie standardowe z próby (N-1)."""

    def test_reference_value(self):
        assert sample_std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.138089935299395)

    def test_matches_numpy_ddof1(self):
        data = [10, 20, 30, 12, 17.5]
        assert sample_std_dev(data) == pytest.approx(float(np.std(data, ddof=1)))

    def test_constant_samples_are_zero(self):
        assert sample_std_dev([3.0, 3.0, 3.0]) == 0.0

    def test_two_samples(self):
        assert sample_std_dev([1, 3]) == pytest.approx(math.sqrt(2))

    @pytest.mark.parametrize("samples", [[], [42]])
    def test_fewer_than_two_raises(self, samples):
        with pytest.raises(InsufficientSamplesError) as exc:
            sample_std_dev(samples)
        assert exc.value.count == len(samples)

    def test_does_not_modify_input(self):
        data = [3, 1, 2]
        sample_std_dev(data)
        assert data == [3, 1, 2]


class TestSummarizeSamples:
    def test_returns_sample_stats(self):
        stats = summarize_samples([10, 20, 30])
        assert isinstance(stats, SampleStats)
        assert stats.average == 20.0
        assert stats.std_dev == pytest.approx(10.0)

    def test_empty_raises_empty_input_first(self):
        with pytest.raises(EmptyInputError):
            summarize_samples([])
