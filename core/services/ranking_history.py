import math
import random
import zlib

DEFAULT_POINTS = 6
VARIATION = 0.05


def synthesize_ranking_history(current: int, points: int = DEFAULT_POINTS, rng: random.Random | None = None) -> list[int]:
    """
    Builds a short descending trend around the current ranking for the charts.

    The platforms only expose the current value, so this series is made up for
    display: every point is the current value moved by up to 5% either way.
    It is not measured history and should never be stored as such.
    """
    if points <= 0:
        return []
    rng = rng or random
    base = int(current)
    history = []
    for _ in range(points):
        variation = math.floor(rng.uniform(-VARIATION, VARIATION) * base)
        history.append(max(1, base + variation))
    return sorted(history, reverse=True)


def stable_rng(*parts: str) -> random.Random:
    """Random generator seeded from `parts`, so the same accounts get the same curve."""
    seed = zlib.crc32("|".join(parts).encode("utf-8"))
    return random.Random(seed)
