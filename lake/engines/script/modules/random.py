"""
Random module for build scripts: rnd_int, rnd_string, rnd_bool, rnd_float.
"""

import random as _random
import string
from typing import Any

from lake.core.errors import PluginError

from .base import CapabilityModule, plugin_error

_ALPHANUMERIC = string.ascii_letters + string.digits


def _bad_args(msg: str) -> PluginError:
    return plugin_error(ValueError(msg), "random")


def _as_int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise plugin_error(e, f"random: {what} must be an integer") from e


def make_random_module(*, rng: _random.Random | None = None) -> CapabilityModule:
    """Build the `random` module. ``rng`` lets tests pass a seeded generator."""
    r = rng or _random.Random()

    def rnd_int(min: int, max: int) -> int:
        """Integer in [min, max). Numeric strings are accepted."""
        lo, hi = _as_int(min, "min"), _as_int(max, "max")
        if lo >= hi:
            raise _bad_args("min must be less than max for rnd_int")
        return r.randrange(lo, hi)

    def rnd_string(length: int) -> str:
        n = _as_int(length, "length")
        if n <= 0:
            raise _bad_args("length must be positive for rnd_string")
        return "".join(r.choice(_ALPHANUMERIC) for _ in range(n))

    def rnd_bool() -> bool:
        return r.random() < 0.5

    def rnd_float(min: float | None = None, max: float | None = None) -> float:
        if min is None and max is None:
            return r.random()
        if not isinstance(min, (int, float)) or not isinstance(max, (int, float)):
            raise _bad_args("rnd_float expects either no arguments or (min, max) as numbers")
        if min >= max:
            raise _bad_args("min must be less than max for rnd_float")
        return r.uniform(float(min), float(max))

    return CapabilityModule(
        "random",
        {
            "rnd_int": rnd_int,
            "rnd_string": rnd_string,
            "rnd_bool": rnd_bool,
            "rnd_float": rnd_float,
        },
    )
