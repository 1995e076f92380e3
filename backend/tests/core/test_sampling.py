import random
import statistics

import pytest

from backend.app.core.sampling import (
    VIN_ALPHABET,
    clamp,
    generate_vin,
    normal_sample,
    random_int,
    weighted_choice,
)


class FixedRandom:
    """Stand-in random source replaying fixed uniform draws."""

    def __init__(self, values):
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


def test_weighted_choice_never_picks_zero_weight_item():
    for seed in range(200):
        assert weighted_choice(random.Random(seed), [("A", 0), ("B", 1)]) == "B"


def test_weighted_choice_zero_draw_skips_zero_weight_item():
    assert weighted_choice(FixedRandom([0.0]), [("A", 0), ("B", 1)]) == "B"


def test_weighted_choice_single_item():
    rng = random.Random(11)
    for _ in range(50):
        assert weighted_choice(rng, [("only", 0.3)]) == "only"


def test_weighted_choice_falls_back_to_last_item_on_float_drift():
    # 0.1 + 0.2 leaves a tiny positive remainder after both subtractions
    assert weighted_choice(FixedRandom([1.0]), [("a", 0.1), ("b", 0.2)]) == "b"


def test_weighted_choice_drift_fallback_skips_trailing_zero_weight():
    items = [("a", 0.1), ("b", 0.2), ("c", 0.0)]
    assert weighted_choice(FixedRandom([1.0]), items) == "b"


def test_weighted_choice_rejects_empty_and_zero_total():
    with pytest.raises(ValueError):
        weighted_choice(random.Random(1), [])
    with pytest.raises(ValueError):
        weighted_choice(random.Random(1), [("a", 0), ("b", 0)])


def test_weighted_choice_roughly_follows_weights():
    rng = random.Random(5)
    draws = [weighted_choice(rng, [("draft", 0.15), ("live", 0.70), ("sold", 0.15)]) for _ in range(5000)]
    live_share = draws.count("live") / len(draws)
    assert 0.65 < live_share < 0.75


def test_normal_sample_matches_parameters():
    rng = random.Random(42)
    samples = [normal_sample(rng, 0.78, 0.10) for _ in range(5000)]
    assert abs(statistics.mean(samples) - 0.78) < 0.01
    assert 0.09 < statistics.pstdev(samples) < 0.11


def test_normal_sample_handles_zero_uniform_draw():
    assert normal_sample(FixedRandom([0.0, 0.0]), 0.78, 0.10) == pytest.approx(0.78)


def test_clamp_bounds():
    assert clamp(1.4, 0.5, 1.0) == 1.0
    assert clamp(0.2, 0.5, 1.0) == 0.5
    assert clamp(0.75, 0.5, 1.0) == 0.75


def test_random_int_is_inclusive():
    rng = random.Random(3)
    values = {random_int(rng, 0, 1) for _ in range(200)}
    assert values == {0, 1}


def test_generate_vin_shape():
    for seed in range(100):
        vin = generate_vin(random.Random(seed))
        assert len(vin) == 17
        assert set(vin) <= set(VIN_ALPHABET)
        assert not set(vin) & {"I", "O", "Q"}
