"""Posterior moment updates for the ordinal (three-category) ideal point model."""

import math

import numpy as np

from emirt.truncnorm import truncated_normal_variance

# Latent intervals for each response category; 0 marks a missing response.
_CUTPOINTS = {
    0: (-math.inf, math.inf),
    1: (-math.inf, 0.0),
    2: (0.0, 1.0),
    3: (1.0, math.inf),
}


def _matrix(values):
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        return arr.reshape(1, 1)
    if arr.ndim == 1:
        return arr.reshape(-1, 1)
    return arr


def _column(values):
    return _matrix(values)[:, 0]


def _scalar(values):
    return float(np.asarray(values, dtype=float).reshape(-1)[0])


def _inv_sympd(matrix):
    m = _matrix(matrix)
    if m.shape[0] != m.shape[1]:
        raise np.linalg.LinAlgError("matrix is not square")
    inv_lower = np.linalg.inv(np.linalg.cholesky(m))
    return inv_lower.T @ inv_lower


def expected_bb(eb):
    """E[b^2] per item, treating b as fixed (ECM)."""
    b = _column(eb)
    return (b * b)[:, None]


def expected_tt(etau):
    """E[tau^2] per item, treating tau as fixed (ECM)."""
    tau = _column(etau)
    return (tau * tau)[:, None]


def expected_xx(ex, vx):
    """E[x^2] per respondent with a common variance."""
    x = _column(ex)
    return (x * x + _scalar(vx))[:, None]


def expected_zzstar(ezstar, vzstar):
    """E[z*^2] elementwise from means and variances."""
    ezstar = _matrix(ezstar)
    return ezstar * ezstar + _matrix(vzstar)


def _gamma_shape_rate(ex, exx, eb, ebb, etau, ett, ezstar, ezzstar):
    ezstar = _matrix(ezstar)
    ezzstar = _matrix(ezzstar)
    n = ezstar.shape[0]
    x = _column(ex)
    b = _column(eb)
    tau = _column(etau)
    rate = (
        ezzstar.sum(axis=0)
        + n * _column(ett)
        + _column(ebb) * _column(exx).sum()
        - 2 * tau * ezstar.sum(axis=0)
        - 2 * b * (x @ ezstar)
        + 2 * tau * b * x.sum()
    ) / 2
    shape = 1 + n // 2
    return shape, rate


def expected_d(ex, exx, eb, ebb, etau, ett, ezstar, ezzstar):
    """E[d] per item, where d^2 is the item precision."""
    shape, rate = _gamma_shape_rate(ex, exx, eb, ebb, etau, ett, ezstar, ezzstar)
    factor = math.exp(math.lgamma(shape + 0.5) - math.lgamma(shape))
    with np.errstate(all="ignore"):
        return (factor / np.sqrt(rate))[:, None]


def expected_dd(ex, exx, eb, ebb, etau, ett, ezstar, ezzstar):
    """E[d^2] per item, the gamma-posterior mean of the precision."""
    shape, rate = _gamma_shape_rate(ex, exx, eb, ebb, etau, ett, ezstar, ezzstar)
    with np.errstate(all="ignore"):
        return (shape / rate)[:, None]


def expected_x2x2(ex, vx):
    """2x2 second-moment matrix of [1, x]."""
    x = _column(ex)
    n = len(x)
    total = x.sum()
    return np.array([[n, total], [total, n * _scalar(vx) + x @ x]], dtype=float)


def expected_x(ezstar, eb, etau, vx, edd, xmu, xsigma):
    """Posterior means of the ideal points, as a column."""
    ezstar = _matrix(ezstar)
    b = _column(eb)
    dd = _column(edd)
    bdd = b * dd
    btdd = b * _column(etau) * dd
    inner = ezstar @ bdd - btdd.sum()
    with np.errstate(all="ignore"):
        result = _scalar(vx) * (_scalar(xmu) / _scalar(xsigma) + inner)
    return result[:, None]


def beta_covariances(ex2x2, sigma, edd):
    """Posterior covariance of each item's parameters, stacked by item."""
    ex2x2 = _matrix(ex2x2)
    sigma_inv = _inv_sympd(sigma)
    covs = [_inv_sympd(sigma_inv + d * ex2x2) for d in _column(edd)]
    if not covs:
        return np.empty((0,) + ex2x2.shape)
    return np.stack(covs)


def x_variance(ebb, edd, sigma2_x):
    """Common posterior variance of the ideal points."""
    weighted = float(_column(ebb) @ _column(edd))
    with np.errstate(all="ignore"):
        return float(1 / (1 / np.float64(_scalar(sigma2_x)) + weighted))


def zstar_variance(edd, beta, x, etau, y):
    """Variance of each latent response given its observed category.

    Raises ValueError for a category other than 0, 1, 2 or 3.
    """
    sds = 1 / np.sqrt(_column(edd))
    means = np.outer(_column(x), _column(beta)) + _column(etau)
    y = _matrix(y)
    if y.shape != means.shape:
        raise ValueError(f"responses have shape {y.shape}, expected {means.shape}")
    out = np.empty(means.shape)
    for (i, j), code in np.ndenumerate(y):
        bounds = _CUTPOINTS.get(float(code))
        if bounds is None:
            raise ValueError(f"unknown response category {code!r} at ({i}, {j})")
        out[i, j] = truncated_normal_variance(means[i, j], sds[j], *bounds)
    return out