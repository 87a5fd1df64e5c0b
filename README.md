# emirt

Update steps for fitting item response theory (IRT) models by expectation
maximization. Each function takes the current expectations and variances of
a model's parameters as NumPy arrays and returns updated ones. The functions
do not modify their inputs.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `emirt.truncnorm`: `truncated_normal_variance(mean, sd, low, high)`, the
  variance of a normal distribution truncated to `[low, high]`. Either bound
  may be infinite. When the direct formula gives a value that is not finite
  or is negative, the mirrored problem is evaluated instead.
- `emirt.binary`: the binary-choice model. `expected_x` (posterior means of
  the ideal points; with `as_em=True` the covariance is recomputed from the
  prior and the discriminations instead of taking `vx`), `expected_x2x2`
  (second-moment matrix of `[1, x]`), `beta_covariance` and `x_covariance`.
- `emirt.ordinal`: the three-category ordinal model. `expected_bb`,
  `expected_tt`, `expected_xx`, `expected_zzstar`, `expected_d`,
  `expected_dd`, `expected_x2x2`, `expected_x`, `beta_covariances`,
  `x_variance` and `zstar_variance`. Response codes are 1, 2 and 3, with 0
  for a missing response; any other code raises `ValueError`.
- `emirt.dynamic`: the dynamic model, in which ideal points follow a random
  walk across sessions and bills are sorted by session.
  `legislators_by_session`, `session_ends`, `legislator_counts`,
  `presence_matrix`, `alpha_variances`, `beta_variances`, `expected_x2x2`,
  `beta_covariances`, and `smooth_ideal_points`, a Kalman forward filter and
  backward smoother that returns new `(ex, vx)` matrices.
- `emirt.hierarchical`: the hierarchical model with group-level covariates,
  observations in long form (`i[l]`, `j[l]`). `expected_bb`,
  `beta_covariances`, `gamma_covariances`, `expected_gamma`, `expected_gg`,
  `expected_sigma`, `eta_variances`, `expected_eta` (returns
  `(eta, eta2)`), `expected_x2` and `expected_x2x2`.
- `emirt.poisson`: the Poisson model for a word-by-document count matrix.
  `linear_predictors` (returns `(exi, xi, exixi)`), `beta_variances`,
  `expected_beta`, `expected_psi`, `x_variances` and `expected_x`.
- `emirt.endorse`: the endorsement model. `expected_beta`,
  `expected_gamma` (holds gamma at 1 with variance 0), `expected_theta` and
  `expected_w` (one Newton step each), and `higher_moments`, which returns a
  frozen `HigherMoments` record with `theta2`, `theta3`, `theta4`, `w2`,
  `w3`, `w4` and `gamma2`.

Matrix inversions require symmetric positive definite input and raise
`numpy.linalg.LinAlgError` otherwise.

## Example

```python
import numpy as np
from emirt.truncnorm import truncated_normal_variance
from emirt.binary import expected_x2x2, beta_covariance

# Variance of a standard normal truncated to the positive half-line.
v = truncated_normal_variance(0.0, 1.0, 0.0, np.inf)

ex = np.array([[0.5], [-1.0], [1.5]])
vx = np.array([[0.2]])
ex2x2 = expected_x2x2(ex, vx)
vb2 = beta_covariance(ex2x2, np.eye(2) * 25.0)
```

Arrays follow the row/column layout of the model: one row per respondent or
item, one column per dimension. Index arrays (legislator, bill, group,
individual) are zero-based.

## What the package does not do

- It has no estimation driver: there is no function that runs the updates
  in turn, checks convergence or reports progress. The caller writes that
  loop.
- It does not compute the expected values (means) of truncated normal
  latent responses; only their variance is provided, so the expected latent
  responses (`eystar`, `ezstar`, `ystar`) must be supplied by the caller.
- There is no command-line interface and no storage of fitted models.