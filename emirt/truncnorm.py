"""Variance of a univariate truncated normal distribution."""

import math

import numpy as np
from scipy.special import ndtr

_INV_SQRT_2PI = 1.0 / math.sqrt(2.0 * math.pi)


def _dnorm(x):
    return _INV_SQRT_2PI * np.exp(-0.5 * x * x)


def _variance_both(mean, sd, low, high):
    """Variance when truncated both below and above."""
    s_low = (low - mean) / sd
    s_high = (high - mean) / sd
    q1 = _dnorm(s_low)
    q2 = _dnorm(s_high)
    q3 = ndtr(s_low)
    q4 = ndtr(s_high)
    mass = q4 - q3
    t1 = (s_low * q1 - s_high * q2) / mass
    t2 = ((q1 - q2) / mass) ** 2
    return sd**2 * (1 + t1 - t2)


def _variance_below(mean, sd, low):
    """Variance when truncated below only."""
    s_low = (low - mean) / sd
    ratio = _dnorm(s_low) / (1 - ndtr(s_low))
    return sd**2 * (1 + s_low * ratio - ratio**2)


def _variance_above(mean, sd, high):
    """Variance when truncated above only."""
    s_high = (high - mean) / sd
    ratio = _dnorm(s_high) / ndtr(s_high)
    return sd**2 * (1 - s_high * ratio - ratio**2)


def truncated_normal_variance(mean, sd, low, high):
    """Return the variance of N(mean, sd^2) truncated to [low, high].

    Infinite bounds mean no truncation on that side. When the direct
    formula is not finite or negative, the mirrored problem is used.
    """
    mean, sd, low, high = (np.float64(v) for v in (mean, sd, low, high))
    with np.errstate(all="ignore"):
        low_open = low == -np.inf
        high_open = high == np.inf
        if low_open and high_open:
            out = sd**2
        elif low_open:
            out = _variance_above(mean, sd, high)
        elif high_open:
            out = _variance_below(mean, sd, low)
        else:
            out = _variance_both(mean, sd, low, high)

        if not np.isfinite(out) or out < 0:
            if low_open:
                out = _variance_below(-mean, sd, -high)
            elif high_open:
                out = _variance_above(-mean, sd, -low)
            else:
                out = _variance_both(-mean, sd, -high, -low)
    return float(out)