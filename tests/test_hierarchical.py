import numpy as np
import pytest

from emirt.hierarchical import (
    beta_covariances,
    eta_variances,
    expected_bb,
    expected_eta,
    expected_gamma,
    expected_gg,
    expected_sigma,
    expected_x2,
    expected_x2x2,
    gamma_covariances,
)


@pytest.fixture
def layout():
    # 3 legislators, 2 groups, 2 bills, 4 observations
    return {
        "g": np.array([0, 1, 0]),
        "i": np.array([0, 1, 2, 0]),
        "j": np.array([0, 0, 1, 1]),
        "z": np.array([[1.0, 0.5], [1.0, -1.0], [1.0, 2.0]]),
    }


def test_expected_bb_zero_covariance_gives_squares():
    eb = np.array([1.5, -2.0, 0.5])
    out = expected_bb(eb, np.zeros((3, 2, 2)))
    assert out.shape == (3, 1)
    np.testing.assert_allclose(out[:, 0], eb**2)


def test_expected_bb_zero_mean_gives_variance():
    vb2 = np.zeros((2, 2, 2))
    vb2[0, 1, 1] = 0.3
    vb2[1, 1, 1] = 0.7
    vb2[:, 0, 0] = 9.0
    out = expected_bb(np.zeros(2), vb2)
    np.testing.assert_allclose(out[:, 0], [0.3, 0.7])


def test_beta_covariances_unobserved_bill_is_prior(layout):
    betasigma = np.array([[2.0, 0.3], [0.3, 1.0]])
    ex2x2 = np.tile(np.eye(2), (3, 1, 1))
    out = beta_covariances(betasigma, ex2x2, layout["i"], layout["j"], 3)
    assert out.shape == (3, 2, 2)
    np.testing.assert_allclose(out[2], betasigma)


def test_beta_covariances_inverse_adds_moments(layout):
    betasigma = np.eye(2) * 4.0
    rng = np.random.default_rng(1)
    ex2x2 = []
    for _ in range(3):
        a = rng.normal(size=(2, 2))
        ex2x2.append(a @ a.T + np.eye(2))
    ex2x2 = np.array(ex2x2)
    out = beta_covariances(betasigma, ex2x2, layout["i"], layout["j"], 2)
    prior_precision = np.linalg.inv(betasigma)
    np.testing.assert_allclose(
        np.linalg.inv(out[0]), prior_precision + ex2x2[0] + ex2x2[1]
    )
    np.testing.assert_allclose(
        np.linalg.inv(out[1]), prior_precision + ex2x2[2] + ex2x2[0]
    )


def test_beta_covariances_rejects_indefinite_prior(layout):
    with pytest.raises(np.linalg.LinAlgError):
        beta_covariances(
            np.array([[1.0, 0.0], [0.0, -1.0]]),
            np.zeros((3, 2, 2)),
            layout["i"],
            layout["j"],
            2,
        )


def test_gamma_covariances_inverse_adds_weighted_outer(layout):
    gammasigma = np.eye(2)
    ebb = np.array([2.0, 0.5])
    out = gamma_covariances(
        gammasigma, ebb, layout["g"], layout["i"], layout["j"], layout["z"], 2
    )
    z = layout["z"]
    group1 = np.eye(2) + ebb[0] * np.outer(z[1], z[1])
    np.testing.assert_allclose(np.linalg.inv(out[1]), group1)
    group0 = (
        np.eye(2)
        + ebb[0] * np.outer(z[0], z[0])
        + ebb[1] * np.outer(z[2], z[2])
        + ebb[1] * np.outer(z[0], z[0])
    )
    np.testing.assert_allclose(np.linalg.inv(out[0]), group0)


def test_gamma_covariances_symmetric(layout):
    out = gamma_covariances(
        np.eye(2) * 3.0, [1.0, 1.0], layout["g"], layout["i"], layout["j"],
        layout["z"], 2,
    )
    np.testing.assert_allclose(out, np.transpose(out, (0, 2, 1)))


def test_expected_gamma_without_observations_is_prior_mean():
    gammasigma = np.array([[2.0, 0.0], [0.0, 4.0]])
    gammamu = np.array([1.0, -1.0])
    out = expected_gamma(
        np.array([gammasigma]), gammasigma, gammamu,
        g=[0], i=[], j=[], z=[[1.0, 1.0]],
        eb=[1.0], ebb=[1.0], eystar=[], ea=[0.0], eta=[0.0],
    )
    np.testing.assert_allclose(out, [gammamu])


def test_expected_gamma_single_observation():
    z = np.array([[1.0, 3.0]])
    out = expected_gamma(
        np.array([np.eye(2)]), np.eye(2), np.zeros(2),
        g=[0], i=[0], j=[0], z=z,
        eb=[1.0], ebb=[0.0], eystar=[2.0], ea=[0.0], eta=[5.0],
    )
    np.testing.assert_allclose(out, 2.0 * z)


def test_expected_gg_zero_covariance_is_outer_product():
    egamma = np.array([[1.0, 2.0], [-1.0, 0.5]])
    out = expected_gg(egamma, np.zeros((2, 2, 2)))
    for m in range(2):
        np.testing.assert_allclose(out[m], np.outer(egamma[m], egamma[m]))
    np.testing.assert_allclose(out, np.transpose(out, (0, 2, 1)))


def test_expected_gg_zero_mean_is_covariance():
    vgamma = np.array([[[2.0, 0.1], [0.1, 1.0]]])
    out = expected_gg(np.zeros((1, 2)), vgamma)
    np.testing.assert_allclose(out, vgamma)


def test_expected_sigma_flat_prior_is_group_mean():
    eta2 = np.array([1.0, 4.0, 3.0, 8.0])
    g = np.array([0, 1, 0, 1])
    out = expected_sigma(eta2, [0.0], [0.0], g, 2)
    np.testing.assert_allclose(out[:, 0], [np.mean([1.0, 3.0]), np.mean([4.0, 8.0])])


def test_expected_sigma_empty_group_is_prior_ratio():
    out = expected_sigma([1.0], [2.0], [6.0], [0], 2)
    assert out.shape == (2, 1)
    assert out[1, 0] == pytest.approx(3.0)


def test_eta_variances_without_observations_is_group_variance():
    out = eta_variances([], [], [0, 1], [0.5, 2.0], [1.0], 2)
    np.testing.assert_allclose(out[:, 0], [0.5, 2.0])


def test_eta_variances_precision_adds_ebb(layout):
    esigma = np.array([0.5, 2.0])
    ebb = np.array([1.5, 0.25])
    out = eta_variances(layout["i"], layout["j"], layout["g"], esigma, ebb, 3)
    precision = 1 / out[:, 0]
    np.testing.assert_allclose(precision[0] - 1 / esigma[0], ebb[0] + ebb[1])
    np.testing.assert_allclose(precision[1] - 1 / esigma[1], ebb[0])
    np.testing.assert_allclose(precision[2] - 1 / esigma[0], ebb[1])


def test_expected_eta_second_moment_invariant(layout):
    veta = np.array([0.4, 0.9, 0.2])
    eta, eta2 = expected_eta(
        veta, eystar=[0.5, -1.0, 2.0, 0.3], eb=[1.0, -0.5], eba=[0.1, 0.2],
        ebb=[1.2, 0.4], egamma=[[0.2, 0.1], [-0.3, 0.5]], z=layout["z"],
        g=layout["g"], i=layout["i"], j=layout["j"],
    )
    assert eta.shape == (3, 1)
    np.testing.assert_allclose(eta2[:, 0] - eta[:, 0] ** 2, veta)


def test_expected_eta_without_observations():
    eta, eta2 = expected_eta(
        [0.7], eystar=[], eb=[1.0], eba=[0.0], ebb=[1.0],
        egamma=[[1.0]], z=[[1.0]], g=[0], i=[], j=[],
    )
    assert eta[0, 0] == 0.0
    assert eta2[0, 0] == pytest.approx(0.7)


def test_expected_x2_zero_gamma_gives_eta(layout):
    ex2 = np.array([[1.0, 9.0], [1.0, 9.0], [1.0, 9.0]])
    eta = np.array([0.3, -0.2, 1.1])
    out = expected_x2(ex2, np.zeros((2, 2)), eta, layout["g"], layout["z"])
    np.testing.assert_allclose(out[:, 0], ex2[:, 0])
    np.testing.assert_allclose(out[:, 1], eta)
    assert ex2[0, 1] == 9.0


def test_expected_x2x2_structure(layout):
    ex2x2 = np.zeros((3, 2, 2))
    ex2x2[:, 0, 0] = 1.0
    ex2 = np.array([[1.0, 0.4], [1.0, -0.6], [1.0, 1.3]])
    eta2 = np.array([0.5, 0.25, 2.0])
    out = expected_x2x2(
        ex2x2, ex2, np.zeros((2, 2, 2)), np.zeros((2, 2)), np.zeros(3), eta2,
        layout["g"], layout["z"],
    )
    np.testing.assert_allclose(out[:, 0, 0], ex2x2[:, 0, 0])
    np.testing.assert_allclose(out[:, 0, 1], ex2[:, 1])
    np.testing.assert_allclose(out[:, 1, 0], ex2[:, 1])
    np.testing.assert_allclose(out[:, 1, 1], eta2)


def test_expected_x2x2_identity_egg_gives_squared_norm(layout):
    egg = np.tile(np.eye(2), (2, 1, 1))
    out = expected_x2x2(
        np.zeros((3, 2, 2)), np.zeros((3, 2)), egg, np.zeros((2, 2)),
        np.zeros(3), np.zeros(3), layout["g"], layout["z"],
    )
    np.testing.assert_allclose(out[:, 1, 1], np.sum(layout["z"] ** 2, axis=1))