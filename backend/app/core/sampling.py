from __future__ import annotations

import math
import random
from typing import Sequence, Tuple, TypeVar

T = TypeVar("T")

VIN_ALPHABET = "ABCDEFGHJKLMNPRSTUVWXYZ0123456789"
VIN_LENGTH = 17


def random_int(rng: random.Random, low: int, high: int) -> int:
    """Uniform integer in the closed range [low, high]."""
    return rng.randint(low, high)


def random_float(rng: random.Random, low: float, high: float) -> float:
    return rng.uniform(low, high)


def weighted_choice(rng: random.Random, items: Sequence[Tuple[T, float]]) -> T:
    """Pick one item with probability proportional to its weight.

    Draws uniform(0, total) and subtracts each weight until the running value
    goes non-positive. Zero-weight items are never selected. The last positively
    weighted item is returned if floating-point drift exhausts the loop.
    """
    if not items:
        raise ValueError("weighted_choice requires at least one item")
    total = sum(weight for _, weight in items)
    if total <= 0:
        raise ValueError("weighted_choice requires a positive total weight")

    remaining = rng.random() * total
    for item, weight in items:
        if weight <= 0:
            continue
        remaining -= weight
        if remaining <= 0:
            return item
    return next(item for item, weight in reversed(items) if weight > 0)


def normal_sample(rng: random.Random, mean: float, stdev: float) -> float:
    """Gaussian sample via the Box-Muller transform."""
    u1 = 1.0 - rng.random()  # (0, 1], keeps log() finite
    u2 = rng.random()
    z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    return z0 * stdev + mean


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def generate_vin(rng: random.Random) -> str:
    return "".join(rng.choice(VIN_ALPHABET) for _ in range(VIN_LENGTH))
