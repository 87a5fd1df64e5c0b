"""Posterior moment updates for the Poisson (word count) scaling model.

Counts are stored as a word-by-document matrix ``y``. Document ``k``
is written by individual ``i[k]``. The log rate of word ``j`` in
document ``k`` is ``alpha[k] + psi[j] + beta[j] * x[i[k]]``.
"""

import numpy as np


def _column(values):
    return np.asarray(values, dtype=float).reshape(-1)


def _matrix(values):
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        return arr.reshape(1, 1)
    if arr.ndim == 1:
        return arr.reshape(1, -1)
    return arr


def _indices(values):
    return _column(values).astype(int)


def _sum_by_individual(per_document, i, n_individuals):
    """Sum per-document values over each individual's documents."""
    owners = _indices(i)
    keep = (owners >= 0) & (owners < n_individuals)
    return np.bincount(
        owners[keep], weights=per_document[keep], minlength=n_individuals
    )[:n_individuals]


def linear_predictors(ealpha, epsi, ebeta, ex, i):
    """Linear predictors for every word and document.

    Returns ``(exi, xi, exixi)``, each words by documents, where ``xi``
    is the log rate, ``exi`` its exponential and ``exixi`` their product.
    """
    ealpha = _column(ealpha)
    epsi = _column(epsi)
    ebeta = _column(ebeta)
    ex = _column(ex)
    owners = _indices(i)
    xi = ealpha[None, :] + epsi[:, None] + ebeta[:, None] * ex[owners][None, :]
    with np.errstate(over="ignore", invalid="ignore"):
        exi = np.exp(xi)
        exixi = exi * xi
    return exi, xi, exixi


def beta_variances(ex, vx, exi, i, beta_sigma):
    """Posterior variance of each word's discrimination, as a column."""
    exx = _column(ex) ** 2 + _column(vx)
    weights = exx[_indices(i)]
    denom = _matrix(exi) @ weights
    with np.errstate(divide="ignore", invalid="ignore"):
        return (1 / (denom + 1 / np.float64(beta_sigma)))[:, None]


def expected_beta(vbeta, ealpha, exi, exixi, y, epsi, exfull,
                  beta_mu, beta_sigma):
    """Posterior mean of each word's discrimination, as a column.

    ``exfull`` holds the ideal point of each document's author.
    """
    exi = _matrix(exi)
    exixi = _matrix(exixi)
    y = _matrix(y)
    exfull = _column(exfull)
    exa = exfull * _column(ealpha)
    exi_x = exi @ exfull
    with np.errstate(divide="ignore", invalid="ignore"):
        numer = (
            y @ exfull
            - exi_x
            - exi @ exa
            + exixi @ exfull
            - exi_x * _column(epsi)
            + np.float64(beta_mu) / np.float64(beta_sigma)
        )
        return (numer * _column(vbeta))[:, None]


def expected_psi(exfull, exi, exixi, y, ealpha, ebeta, psi_mu, psi_sigma):
    """Posterior mean of each word's baseline frequency, as a column."""
    exi = _matrix(exi)
    exixi = _matrix(exixi)
    y = _matrix(y)
    with np.errstate(divide="ignore", invalid="ignore"):
        prior_precision = 1 / np.float64(psi_sigma)
        denom = exi.sum(axis=1) + prior_precision
        numer = (
            y.sum(axis=1)
            - denom
            + prior_precision
            - exi @ _column(ealpha)
            + exixi.sum(axis=1)
            - (exi @ _column(exfull)) * _column(ebeta)
            + np.float64(psi_mu) * prior_precision
        )
        return (numer / denom)[:, None]


def x_variances(ebeta, vbeta, exi, i, x_sigma, n_individuals):
    """Posterior variance of each individual's ideal point, as a column."""
    ebb = _column(ebeta) ** 2 + _column(vbeta)
    per_document = ebb @ _matrix(exi)
    totals = _sum_by_individual(per_document, i, n_individuals)
    with np.errstate(divide="ignore", invalid="ignore"):
        return (1 / (totals + 1 / np.float64(x_sigma)))[:, None]


def expected_x(vx, ealpha, exi, exixi, y, epsi, ebeta, vbeta, i,
               x_mu, x_sigma):
    """Posterior mean of each individual's ideal point, as a column.

    The number of individuals is the length of ``vx``. ``vbeta`` does not
    enter this update.
    """
    vx = _column(vx)
    ebeta = _column(ebeta)
    _column(vbeta)
    exi = _matrix(exi)
    ebp = ebeta * _column(epsi)
    beta_exi = ebeta @ exi
    per_document = (
        ebeta @ _matrix(y)
        - beta_exi
        - ebp @ exi
        + ebeta @ _matrix(exixi)
        - beta_exi * _column(ealpha)
    )
    totals = _sum_by_individual(per_document, i, len(vx))
    with np.errstate(divide="ignore", invalid="ignore"):
        numer = totals + np.float64(x_mu) / np.float64(x_sigma)
        return (numer * vx)[:, None]