"""Posterior moment updates for the endorsement ideal point model.

Respondent ``n`` answers item ``j`` through a latent utility with mean
``alpha[j] + beta[n] - gamma * (theta[n] - w[j])**2``. ``ystar`` holds
the expected latent utilities, respondents by items.
"""

from dataclasses import dataclass

import numpy as np


def _column(values):
    return np.asarray(values, dtype=float).reshape(-1)


def _scalar(values):
    return np.float64(np.asarray(values, dtype=float).reshape(-1)[0])


def _responses(ystar, per_respondent=(), per_item=()):
    """Return ``ystar`` as a matrix after checking the other inputs fit it."""
    y = np.asarray(ystar, dtype=float)
    if y.ndim != 2:
        raise ValueError(f"ystar must be a matrix, got {y.ndim} dimensions")
    n, j = y.shape
    for name, values in per_respondent:
        if len(values) != n:
            raise ValueError(f"{name} has length {len(values)}, expected {n}")
    for name, values in per_item:
        if len(values) != j:
            raise ValueError(f"{name} has length {len(values)}, expected {j}")
    return y


@dataclass(frozen=True)
class HigherMoments:
    """Second to fourth raw moments of theta and w, and the second of gamma."""

    theta2: np.ndarray
    theta3: np.ndarray
    theta4: np.ndarray
    w2: np.ndarray
    w3: np.ndarray
    w4: np.ndarray
    gamma2: np.ndarray


def expected_beta(ystar, alpha, theta, w, gamma, mu, sigma):
    """Posterior means and variances of the respondent intercepts.

    Returns ``(ebeta, vbeta)`` as columns; every variance is the same.
    """
    alpha = _column(alpha)
    theta = _column(theta)
    w = _column(w)
    y = _responses(ystar, [("theta", theta)], [("alpha", alpha), ("w", w)])
    n, j = y.shape
    g = _scalar(gamma)
    with np.errstate(all="ignore"):
        sigma = _scalar(sigma)
        variance = 1 / (j + 1 / sigma)
        dist2 = (theta[:, None] - w[None, :]) ** 2
        totals = _scalar(mu) / sigma + (y - alpha[None, :] + g * dist2).sum(axis=1)
        vbeta = np.full((n, 1), variance)
        ebeta = (variance * totals)[:, None]
    return ebeta, vbeta


def expected_gamma(ystar, alpha, beta, theta, w, mu, sigma):
    """Return ``(egamma, vgamma)`` for the distance weight.

    The model holds gamma fixed at 1 with zero variance; the inputs are
    only checked for consistent shapes.
    """
    _responses(
        ystar,
        [("beta", _column(beta)), ("theta", _column(theta))],
        [("alpha", _column(alpha)), ("w", _column(w))],
    )
    _scalar(mu)
    _scalar(sigma)
    return np.array([[1.0]]), np.array([[0.0]])


def _newton(old, v1, q1):
    precision_half = v1 / 2
    variance = 1 / precision_half
    mean = variance * (old * v1 - q1) / 2
    return mean, variance


def expected_theta(ystar, alpha, beta, w, gamma, mu, sigma, old_theta):
    """One Newton step for the respondent ideal points.

    Returns ``(etheta, vtheta)`` as columns.
    """
    alpha = _column(alpha)
    beta = _column(beta)
    w = _column(w)
    old = _column(old_theta)
    y = _responses(
        ystar,
        [("beta", beta), ("old_theta", old)],
        [("alpha", alpha), ("w", w)],
    )
    g = _scalar(gamma)
    with np.errstate(all="ignore"):
        sigma = _scalar(sigma)
        resid = y - alpha[None, :] - beta[:, None]
        d = old[:, None] - w[None, :]
        v1 = 2 / sigma + 4 * (g * resid + 3 * g * g * d * d).sum(axis=1)
        q1 = (2 / sigma) * (old - _scalar(mu)) + 4 * (
            g * d * resid + g * g * d**3
        ).sum(axis=1)
        mean, variance = _newton(old, v1, q1)
    return mean[:, None], variance[:, None]


def expected_w(ystar, alpha, beta, theta, gamma, mu, sigma, old_w):
    """One Newton step for the item positions.

    Returns ``(ew, vw)`` as columns.
    """
    alpha = _column(alpha)
    beta = _column(beta)
    theta = _column(theta)
    old = _column(old_w)
    y = _responses(
        ystar,
        [("beta", beta), ("theta", theta)],
        [("alpha", alpha), ("old_w", old)],
    )
    g = _scalar(gamma)
    with np.errstate(all="ignore"):
        sigma = _scalar(sigma)
        resid = y - alpha[None, :] - beta[:, None]
        d = theta[:, None] - old[None, :]
        v1 = 2 / sigma + 4 * (g * resid + 3 * g * g * d * d).sum(axis=0)
        q1 = (2 / sigma) * (old - _scalar(mu)) - 4 * (
            g * d * resid + g * g * d**3
        ).sum(axis=0)
        mean, variance = _newton(old, v1, q1)
    return mean[:, None], variance[:, None]


def higher_moments(etheta, vtheta, ew, vw, egamma, vgamma):
    """Raw moments of normally distributed theta, w and gamma."""
    et = np.asarray(etheta, dtype=float)
    vt = np.asarray(vtheta, dtype=float)
    e_w = np.asarray(ew, dtype=float)
    v_w = np.asarray(vw, dtype=float)
    eg = np.asarray(egamma, dtype=float)
    vg = np.asarray(vgamma, dtype=float)
    return HigherMoments(
        theta2=et**2 + vt,
        theta3=et**3 + 3 * et * vt,
        theta4=et**4 + 6 * et**2 * vt + 3 * vt**2,
        w2=e_w**2 + v_w,
        w3=e_w**3 + 3 * e_w * v_w,
        w4=e_w**4 + 6 * e_w**2 * v_w + 3 * v_w**2,
        gamma2=eg**2 + vg,
    )