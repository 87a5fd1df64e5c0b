"""Posterior moment updates for the binary-response ideal point model."""

import numpy as np


def _matrix(values):
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        return arr.reshape(1, 1)
    if arr.ndim == 1:
        return arr.reshape(-1, 1)
    return arr


def _inv_sympd(matrix):
    """Invert a symmetric positive definite matrix, raising LinAlgError otherwise."""
    m = _matrix(matrix)
    if m.shape[0] != m.shape[1]:
        raise np.linalg.LinAlgError("matrix is not square")
    inv_lower = np.linalg.inv(np.linalg.cholesky(m))
    return inv_lower.T @ inv_lower


def expected_x(eystar, eb, vx, eba, mu, sigma, as_em):
    """Posterior means of the ideal points, one row per respondent.

    With ``as_em`` the covariance is recomputed from the prior and the
    item discriminations instead of taking ``vx``.
    """
    eystar = _matrix(eystar)
    eb = _matrix(eb)
    sigma_inv = _inv_sympd(sigma)
    if as_em:
        cov = _inv_sympd(sigma_inv + eb.T @ eb)
    else:
        cov = _matrix(vx)
    rhs = sigma_inv @ _matrix(mu) + eb.T @ eystar.T - _matrix(eba)
    return (cov @ rhs).T


def expected_x2x2(ex, vx):
    """Second-moment matrix of the augmented design [1, x]."""
    ex = _matrix(ex)
    n, d = ex.shape
    out = np.zeros((d + 1, d + 1))
    out[0, 0] = n
    out[1:, 1:] = n * _matrix(vx) + ex.T @ ex
    sums = ex.sum(axis=0)
    out[1:, 0] = sums
    out[0, 1:] = sums
    return out


def beta_covariance(ex2x2, sigma):
    """Posterior covariance of the item parameters."""
    return _inv_sympd(_inv_sympd(sigma) + _matrix(ex2x2))


def x_covariance(ebb, sigma):
    """Posterior covariance of the ideal points."""
    return _inv_sympd(_inv_sympd(sigma) + _matrix(ebb))