"""
Random number generation utilities.

Generators never reach for a module-level generator. Callers build a source
with ``create_rng`` and pass it down through every generation call, which is
what keeps a world reproducible from its seed.
"""

from typing import Optional, Union

from ..core.alea_prng import AleaPRNG, RandomSource

__all__ = ["RandomSource", "create_rng"]


def create_rng(seed: Optional[Union[str, int]] = None) -> AleaPRNG:
    """
    Create a new Alea PRNG.

    Args:
        seed: Seed string or integer. Falls back to the configured default seed.

    Returns:
        AleaPRNG instance
    """
    if seed is None:
        from ..config import settings

        seed = settings.default_seed
    return AleaPRNG(seed)
