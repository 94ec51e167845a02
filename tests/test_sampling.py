"""Tests for random generators and quasi-random sequences.

Tests cover:
- Reproducible per-thread generators after reseeding
- Radical inverse and incremental Halton sequences
- Evenly spaced and van der Corput sequences
- The Halton-Hammersley point set
"""

import threading

import pytest


class TestThreadRng:
    """Tests for the per-thread pseudo-random generators."""

    def test_same_thread_gets_same_generator(self):
        """Test that repeated calls return the thread's generator."""
        from src.photonmapper.core.sampling import thread_rng

        assert thread_rng() is thread_rng()

    def test_reseed_is_reproducible(self):
        """Test that reseeding with the same seed repeats the stream."""
        from src.photonmapper.core.sampling import reseed, thread_rng

        reseed(7)
        first = thread_rng().random(5)
        reseed(7)
        second = thread_rng().random(5)

        assert (first == second).all()

    def test_threads_get_distinct_streams(self):
        """Test that two threads draw different numbers."""
        from src.photonmapper.core.sampling import thread_rng

        results = {}

        def draw(name):
            results[name] = thread_rng().random(4).tolist()

        threads = [threading.Thread(target=draw, args=(name,)) for name in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results["a"] != results["b"]


class TestHalton:
    """Tests for the radical inverse and Halton sequence."""

    def test_radical_inverse_base_two(self):
        """Test the first values of the base-2 radical inverse."""
        from src.photonmapper.core.sampling import radical_inverse

        assert [radical_inverse(i, 2) for i in range(5)] == [0.0, 0.5, 0.25, 0.75, 0.125]

    def test_incremental_matches_radical_inverse(self):
        """Test that next() walks the same values as the closed form."""
        from src.photonmapper.core.sampling import Halton, radical_inverse

        for base in (2, 3, 5):
            sequence = Halton(base)
            sequence.set_seed(3)
            for i in range(3, 40):
                assert abs(sequence.next() - radical_inverse(i, base)) < 1e-9

    def test_invalid_base(self):
        """Test that bases below 2 are rejected."""
        from src.photonmapper.core.sampling import Halton

        with pytest.raises(ValueError):
            Halton(1)


class TestOtherSequences:
    """Tests for the evenly spaced and van der Corput sequences."""

    def test_evenly_spaced_cycles(self):
        """Test strata values, offset and wrap-around."""
        from src.photonmapper.core.sampling import EvenlySpacedSequence

        sequence = EvenlySpacedSequence(4, offset=0.5)
        values = [sequence.next() for _ in range(5)]

        assert values == [0.125, 0.375, 0.625, 0.875, 0.125]

    def test_evenly_spaced_seed(self):
        """Test that the seed selects the stratum modulo the length."""
        from src.photonmapper.core.sampling import EvenlySpacedSequence

        sequence = EvenlySpacedSequence(4)
        sequence.set_seed(6)

        assert sequence.next() == 0.5

    def test_van_der_corput_from_zero(self):
        """Test that seed 0 walks the base-2 radical inverse."""
        from src.photonmapper.core.sampling import VanDerCorput, radical_inverse

        sequence = VanDerCorput()
        sequence.set_seed(0)
        for i in range(64):
            assert abs(sequence.next() - radical_inverse(i, 2)) < 1e-9

    def test_van_der_corput_stays_in_unit_interval(self):
        """Test arbitrary seeds stay within [0, 1)."""
        from src.photonmapper.core.sampling import VanDerCorput

        sequence = VanDerCorput()
        for seed in (1, 0xFFFFFFFF, 0x12345678, 2**40 + 3):
            sequence.set_seed(seed)
            for _ in range(20):
                value = sequence.next()
                assert 0.0 <= value < 1.0


class TestHaltonHammersleySet:
    """Tests for the vector-valued point set."""

    def test_point_components(self):
        """Test the i-th point combines the Hammersley and Halton dimensions."""
        from src.photonmapper.core.sampling import HaltonHammersleySet

        point_set = HaltonHammersleySet(4, 4)
        point_set.set_seed(1)
        point = point_set.next()

        assert len(point) == 4
        assert point[0] == 0.25
        assert point[1] == 0.5
        assert abs(point[2] - 1.0 / 3.0) < 1e-12
        assert abs(point[3] - 0.2) < 1e-12

    def test_dimension_limits(self):
        """Test rejection of empty and oversized dimensions."""
        from src.photonmapper.core.sampling import HaltonHammersleySet

        with pytest.raises(ValueError):
            HaltonHammersleySet(0, 10)
        with pytest.raises(ValueError):
            HaltonHammersleySet(100, 10)
