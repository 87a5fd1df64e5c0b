"""Posterior moment updates for the dynamic ideal point model.

Legislators serve over a contiguous range of sessions and their ideal
points follow a random walk across sessions. Bills are assumed to be
sorted chronologically by session.
"""

import math

import numpy as np

from emirt.binary import beta_covariance


def _column(values):
    return np.asarray(values, dtype=float).reshape(-1)


def _matrix(values):
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        return arr.reshape(1, 1)
    if arr.ndim == 1:
        return arr.reshape(-1, 1)
    return arr


def _indices(values):
    return _column(values).astype(int)


def legislators_by_session(startlegis, endlegis, n_sessions):
    """Indices of the legislators serving in each session.

    Row ``t`` lists, in increasing order, the legislators present in
    session ``t``; shorter rows are padded with -1. The width is the
    largest number of legislators in any session.
    """
    start = _column(startlegis)
    end = _column(endlegis)
    rows = [
        [i for i, (s, e) in enumerate(zip(start, end)) if s <= t <= e]
        for t in range(n_sessions)
    ]
    width = max((len(row) for row in rows), default=0)
    if width == 0:
        raise ValueError("no legislator serves in any session")
    out = np.full((n_sessions, width), -1, dtype=int)
    for t, row in enumerate(rows):
        out[t, : len(row)] = row
    return out


def session_ends(bill_session, n_sessions):
    """One-past-the-last bill index of each session.

    Bills must be sorted by session. Raises ValueError when the bills
    span more sessions than ``n_sessions``.
    """
    sessions = _column(bill_session)
    ends = np.zeros(n_sessions, dtype=int)
    counter = 0
    for j, session in enumerate(sessions):
        if session != counter:
            if counter >= n_sessions:
                raise ValueError(f"bills span more than {n_sessions} sessions")
            ends[counter] = j
            counter += 1
    if counter >= n_sessions:
        raise ValueError(f"bills span more than {n_sessions} sessions")
    ends[counter] = len(sessions)
    return ends


def legislator_counts(legis_by_session):
    """Number of legislators in each session, ignoring -1 padding."""
    table = np.asarray(legis_by_session)
    if table.ndim == 1:
        table = table.reshape(1, -1)
    counts = []
    for row in table:
        count = len(row)
        while count > 0 and row[count - 1] == -1:
            count -= 1
        counts.append(count)
    return np.array(counts, dtype=int)


def presence_matrix(startlegis, endlegis, n_sessions):
    """Legislator-by-session matrix with 1.0 where the legislator serves."""
    start = _column(startlegis)[:, None]
    end = _column(endlegis)[:, None]
    periods = np.arange(n_sessions)[None, :]
    return ((start <= periods) & (end >= periods)).astype(float)


def _session_variances(vb2, bill_session, entry):
    covs = np.asarray(vb2, dtype=float)
    sessions = _indices(bill_session)
    return covs[sessions, entry, entry][:, None]


def alpha_variances(vb2, bill_session):
    """Posterior variance of each bill's intercept, taken from its session."""
    return _session_variances(vb2, bill_session, 0)


def beta_variances(vb2, bill_session):
    """Posterior variance of each bill's discrimination, taken from its session."""
    return _session_variances(vb2, bill_session, 1)


def expected_x2x2(ex, vx, nlegis_session):
    """2x2 second-moment matrix of [1, x] for each session, stacked by session.

    Entries of ``ex`` and ``vx`` for absent legislators must be zero.
    """
    ex = _matrix(ex)
    vx = _matrix(vx)
    counts = _column(nlegis_session)
    out = np.zeros((ex.shape[1], 2, 2))
    for t, (x, v) in enumerate(zip(ex.T, vx.T)):
        total = x.sum()
        out[t] = [[counts[t], total], [total, x @ x + v.sum()]]
    return out


def beta_covariances(ex2x2, sigma):
    """Posterior covariance of the bill parameters for each session."""
    slices = np.asarray(ex2x2, dtype=float)
    covs = [beta_covariance(moment, sigma) for moment in slices]
    if not covs:
        return np.empty((0, 2, 2))
    return np.stack(covs)


def smooth_ideal_points(ex, vx, ebb, omega2, eb, eystar, eba, startlegis,
                        endlegis, xmu0, xsigma0, end_session):
    """Kalman-filter and smooth each legislator's ideal point over time.

    Returns new ``(ex, vx)`` matrices (legislators by sessions); cells
    outside a legislator's service keep their values from the inputs.
    """
    ex = _matrix(ex).copy()
    vx = _matrix(vx).copy()
    ebb = _column(ebb)
    eb = _column(eb)
    eba = _column(eba)
    eystar = _matrix(eystar)
    omega2 = _column(omega2)
    xmu0 = _column(xmu0)
    xsigma0 = _column(xsigma0)
    start = _indices(startlegis)
    end = _indices(endlegis)
    ends = _indices(end_session)
    lows = np.concatenate(([0], ends[:-1]))
    bounds = list(zip(lows, ends))

    b_dd = np.array([math.sqrt(ebb[lo:hi].sum()) for lo, hi in bounds])
    eba_sum = np.array([eba[lo:hi].sum() for lo, hi in bounds])

    with np.errstate(all="ignore"):
        for i, (first, last) in enumerate(zip(start, end)):
            mean_prev = np.float64(xmu0[i])
            var_prev = np.float64(xsigma0[i])
            predicted, means, variances = [], [], []
            for t in range(first, last + 1):
                lo, hi = bounds[t]
                b = b_dd[t]
                y_dd = (eystar[i, lo:hi] @ eb[lo:hi] - eba_sum[t]) / b
                o = omega2[i] + var_prev
                s = b * b * o + 1
                k = b * o / s
                var_prev = (1 - k * b) * o
                mean_prev = mean_prev + k * (y_dd - b * mean_prev)
                predicted.append(o)
                means.append(mean_prev)
                variances.append(var_prev)

            vx[i, last] = variances[-1]
            ex[i, last] = means[-1]
            for step in range(len(means) - 2, -1, -1):
                t = first + step
                gain = variances[step] / predicted[step + 1]
                vx[i, t] = variances[step] + gain * gain * (
                    vx[i, t + 1] - predicted[step + 1]
                )
                ex[i, t] = means[step] + gain * (ex[i, t + 1] - means[step])
    return ex, vx