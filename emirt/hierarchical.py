"""Posterior moment updates for the hierarchical ideal point model.

Observations are stored in long form: observation ``l`` is the response
of legislator ``i[l]`` to bill ``j[l]``. Each legislator belongs to a
group ``g[n]`` and has covariates ``z[n]``; the ideal point is
``z[n] . gamma[g[n]] + eta[n]``.
"""

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


def _inv_sympd(matrix):
    m = _matrix(matrix)
    if m.shape[0] != m.shape[1]:
        raise np.linalg.LinAlgError("matrix is not square")
    inv_lower = np.linalg.inv(np.linalg.cholesky(m))
    return inv_lower.T @ inv_lower


def _in_range(index, size):
    return (index >= 0) & (index < size)


def _group_linear(egamma, z, g):
    """Per-legislator z[n] . gamma[g[n]]."""
    egamma = _matrix(egamma)
    z = _matrix(z)
    return np.einsum("nd,nd->n", egamma[_indices(g)], z)


def expected_bb(eb, vb2):
    """E[b^2] per bill from its mean and its covariance matrix."""
    b = _column(eb)
    covs = np.asarray(vb2, dtype=float)
    return (b * b + covs[: len(b), 1, 1])[:, None]


def beta_covariances(betasigma, ex2x2, i, j, n_bills):
    """Posterior covariance of each bill's parameters, stacked by bill."""
    moments = np.asarray(ex2x2, dtype=float)
    legis = _indices(i)
    bills = _indices(j)
    size = _matrix(betasigma).shape[0]
    sums = np.zeros((n_bills, size, size))
    keep = _in_range(bills, n_bills)
    np.add.at(sums, bills[keep], moments[legis[keep]])
    if n_bills == 0:
        return sums
    return np.stack([beta_covariance(s, betasigma) for s in sums])


def gamma_covariances(gammasigma, ebb, g, i, j, z, n_groups):
    """Posterior covariance of each group's coefficients, stacked by group."""
    ebb = _column(ebb)
    z = _matrix(z)
    groups = _indices(g)
    legis = _indices(i)
    bills = _indices(j)
    size = _matrix(gammasigma).shape[0]
    sums = np.zeros((n_groups, size, size))
    obs_groups = groups[legis]
    keep = _in_range(obs_groups, n_groups)
    rows = z[legis[keep]]
    contrib = ebb[bills[keep]][:, None, None] * rows[:, :, None] * rows[:, None, :]
    np.add.at(sums, obs_groups[keep], contrib)
    if n_groups == 0:
        return sums
    return np.stack([beta_covariance(s, gammasigma) for s in sums])


def expected_gamma(vgamma, gammasigma, gammamu, g, i, j, z, eb, ebb, eystar, ea, eta):
    """Posterior means of the group coefficients, one row per group."""
    covs = np.asarray(vgamma, dtype=float)
    n_groups = covs.shape[0]
    z = _matrix(z)
    groups = _indices(g)
    legis = _indices(i)
    bills = _indices(j)
    eb = _column(eb)
    ebb = _column(ebb)
    ea = _column(ea)
    eta = _column(eta)
    eystar = _column(eystar)

    prior = (_inv_sympd(gammasigma) @ _matrix(gammamu)).reshape(-1)
    rows = np.tile(prior, (n_groups, 1))
    weights = eb[bills] * (eystar - ea[bills]) - ebb[bills] * eta[legis]
    obs_groups = groups[legis]
    keep = _in_range(obs_groups, n_groups)
    np.add.at(rows, obs_groups[keep], z[legis[keep]] * weights[keep][:, None])
    return np.einsum("mij,mj->mi", covs, rows)


def expected_gg(egamma, vgamma):
    """E[gamma gamma'] for each group, stacked by group."""
    egamma = _matrix(egamma)
    covs = np.asarray(vgamma, dtype=float)
    return covs + np.einsum("mi,mj->mij", egamma, egamma)


def expected_sigma(eta2, sigmav, sigmas, g, n_groups):
    """E[sigma^2] for each group under its inverse-gamma posterior."""
    eta2 = _column(eta2)
    groups = _indices(g)
    counts = np.zeros(n_groups)
    totals = np.zeros(n_groups)
    keep = _in_range(groups, n_groups)
    np.add.at(counts, groups[keep], 1.0)
    np.add.at(totals, groups[keep], eta2[keep])
    denominator = float(_column(sigmav)[0]) + counts
    numerator = float(_column(sigmas)[0]) + totals
    with np.errstate(all="ignore"):
        return (numerator / denominator)[:, None]


def eta_variances(i, j, g, esigma, ebb, n_legislators):
    """Posterior variance of each legislator's idiosyncratic term."""
    legis = _indices(i)
    bills = _indices(j)
    groups = _indices(g)[:n_legislators]
    esigma = _column(esigma)
    ebb = _column(ebb)
    with np.errstate(all="ignore"):
        precision = 1 / esigma[groups]
        keep = _in_range(legis, n_legislators)
        np.add.at(precision, legis[keep], ebb[bills[keep]])
        return (1 / precision)[:, None]


def expected_eta(veta, eystar, eb, eba, ebb, egamma, z, g, i, j):
    """Posterior means and second moments of the idiosyncratic terms.

    Returns ``(eta, eta2)`` as columns.
    """
    veta = _column(veta)
    n = len(veta)
    legis = _indices(i)
    bills = _indices(j)
    eb = _column(eb)
    eba = _column(eba)
    ebb = _column(ebb)
    eystar = _column(eystar)
    linear = _group_linear(egamma, _matrix(z)[:n], _indices(g)[:n])

    keep = _in_range(legis, n)
    legis = legis[keep]
    bills = bills[keep]
    terms = eystar[keep] * eb[bills] - eba[bills] - ebb[bills] * linear[legis]
    totals = np.zeros(n)
    np.add.at(totals, legis, terms)

    eta = totals * veta
    eta2 = eta * eta + veta
    return eta[:, None], eta2[:, None]


def expected_x2(ex2, egamma, eta, g, z):
    """Expected augmented design [1, x]; only the second column is updated."""
    out = _matrix(ex2).copy()
    out[:, 1] = _group_linear(egamma, z, g) + _column(eta)
    return out


def expected_x2x2(ex2x2, ex2, egg, egamma, eta, eta2, g, z):
    """Second-moment matrices of [1, x] per legislator, stacked by legislator.

    Entry (0, 0) of each matrix is kept from ``ex2x2``.
    """
    out = np.array(ex2x2, dtype=float, copy=True)
    ex2 = _matrix(ex2)
    egg = np.asarray(egg, dtype=float)
    egamma = _matrix(egamma)
    z = _matrix(z)
    groups = _indices(g)
    eta = _column(eta)
    eta2 = _column(eta2)

    quad = np.einsum("ni,nij,nj->n", z, egg[groups], z)
    cross = np.einsum("ni,ni->n", egamma[groups], z) * eta
    out[:, 0, 1] = ex2[:, 1]
    out[:, 1, 0] = ex2[:, 1]
    out[:, 1, 1] = quad + 2 * cross + eta2
    return out