# Reaction times are measured with time.perf_counter_ns, which is monotonic
# and not affected by system clock adjustments:
# https://docs.python.org/3.11/library/time.html#time.perf_counter_ns

import time

NS_PER_MS = 1_000_000


def onset() -> int:
    """Timestamp [ns] of the moment a stimulus became visible."""
    return time.perf_counter_ns()


def elapsed(onset_ns: int, now_ns: int | None = None) -> int:
    """Milliseconds passed since `onset_ns`, rounded to the nearest ms.

    Parameters
    ----------
    onset_ns : int
        timestamp as returned by `onset()`

    now_ns : int | None
        the time of the reaction, read from the clock if None

    Returns
    -------
    int
        the reaction time in ms. Never negative, a clock running backwards
        results in 0.
    """
    if now_ns is None:
        now_ns = time.perf_counter_ns()

    dt_ns = now_ns - onset_ns
    if dt_ns <= 0:
        return 0

    # round half up, `round` would round half to even
    return (dt_ns + NS_PER_MS // 2) // NS_PER_MS
