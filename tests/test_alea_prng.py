"""Tests for the Alea PRNG and seeding helpers."""

from py_wilderness.core.alea_prng import AleaPRNG
from py_wilderness.utils.random import block_seed, create_block_prng, create_prng


class TestAleaPRNG:
    """Test the seeded generator."""

    def test_same_seed_same_sequence(self):
        a = AleaPRNG("wilderness")
        b = AleaPRNG("wilderness")
        assert [a.random() for _ in range(50)] == [b.random() for _ in range(50)]

    def test_different_seeds_differ(self):
        a = AleaPRNG(1)
        b = AleaPRNG(2)
        assert [a.random() for _ in range(10)] != [b.random() for _ in range(10)]

    def test_numeric_and_string_seeds_match(self):
        """Seeds are mashed through str(), so 42 and "42" agree."""
        assert AleaPRNG(42).random() == AleaPRNG("42").random()

    def test_random_range(self):
        prng = AleaPRNG("range")
        for _ in range(1000):
            value = prng.random()
            assert 0.0 <= value < 1.0

    def test_integer_helpers(self):
        prng = AleaPRNG("ints")
        for _ in range(500):
            assert 0 <= prng.randint0(10) < 10
            assert 1 <= prng.randint1(6) <= 6
            assert 3 <= prng.rand_range(3, 12) <= 12

    def test_degenerate_bounds(self):
        prng = AleaPRNG("zero")
        assert prng.randint0(0) == 0
        assert prng.randint1(0) == 0
        assert prng.rand_range(5, 5) == 5

    def test_one_in_one_is_always_true(self):
        prng = AleaPRNG("one_in")
        assert all(prng.one_in(1) for _ in range(100))

    def test_one_in_two_is_roughly_half(self):
        prng = AleaPRNG("coin")
        hits = sum(prng.one_in(2) for _ in range(2000))
        assert 900 <= hits <= 1100

    def test_set_seed_resets(self):
        prng = AleaPRNG("reset")
        first = [prng.random() for _ in range(5)]
        prng.set_seed("reset")
        assert [prng.random() for _ in range(5)] == first
        assert prng.call_count == 5

    def test_get_uniform_alias(self):
        a = AleaPRNG("alias")
        b = AleaPRNG("alias")
        assert a.get_uniform() == b.random()


class TestSeedHelpers:
    """Test PRNG factories."""

    def test_create_prng_default_seed(self):
        assert create_prng().random() == AleaPRNG("default").random()

    def test_create_prng_with_seed(self):
        assert create_prng(7).random() == AleaPRNG(7).random()

    def test_block_seed_formula(self):
        assert block_seed(500, 3, 2) == 500 + 3 * 1000 + 2 * 1000000
        assert block_seed(0, 0, 0) == 0

    def test_block_prng_is_position_dependent(self):
        a = create_block_prng(1234, 5, 6)
        b = create_block_prng(1234, 5, 6)
        c = create_block_prng(1234, 6, 5)
        assert a.random() == b.random()
        assert create_block_prng(1234, 5, 6).random() != c.random()
