import functools
import sys
from pathlib import Path

import pytest

np = pytest.importorskip("numpy")
pd = pytest.importorskip("pandas")

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from regularized_svd import factorizer
from regularized_svd.dataset import RatingDataset
from regularized_svd.errors import EmptyDatasetWarning, IndexOutOfRangeError, InvalidArgumentError
from regularized_svd.factorizer import RegularizedSVD, predict
from regularized_svd.function import RegularizedSVDFunction
from regularized_svd.optimizer import ExponentialDecaySGD

RATINGS = [
    [0, 0, 5.0],
    [0, 2, 3.0],
    [1, 0, 4.0],
    [1, 1, 1.0],
    [2, 1, 2.0],
    [2, 2, 4.5],
    [3, 0, 3.5],
]


def test_defaults_are_constructor_arguments():
    svd = RegularizedSVD()
    assert (svd.iterations, svd.alpha, svd.lambda_) == (10, 0.01, 0.02)
    assert RegularizedSVD.uses_coordinate_list is True


@pytest.mark.parametrize("rank", [1, 2, 5])
def test_output_dimensions(rank):
    users, items = RegularizedSVD(seed=0).apply(RATINGS, rank)
    assert users.shape == (rank, 4)
    assert items.shape == (rank, 3)


def test_pinned_dimensions_allocate_unobserved_columns():
    users, items = RegularizedSVD(seed=0).apply(RATINGS, 3, num_users=6, num_items=8)
    assert users.shape == (3, 6)
    assert items.shape == (3, 8)


def test_single_observation_converges_without_regularization():
    svd = RegularizedSVD(iterations=1000, alpha=0.01, lambda_=0.0, seed=11)
    users, items = svd.apply([[0, 0, 3.0]], 2)
    assert predict(users, items, 0, 0) == pytest.approx(3.0, abs=1e-6)


def test_larger_lambda_shrinks_factors():
    def norm(lam):
        svd = RegularizedSVD(iterations=200, alpha=0.01, lambda_=lam, seed=4)
        users, items = svd.apply(RATINGS, 2)
        return np.linalg.norm(users) ** 2 + np.linalg.norm(items) ** 2

    norms = [norm(lam) for lam in (0.0, 0.5, 2.0)]
    assert norms[0] > norms[1] > norms[2]


def test_same_seed_is_deterministic():
    first = RegularizedSVD(seed=123).apply(RATINGS, 3)
    second = RegularizedSVD(seed=123).apply(RATINGS, 3)
    other = RegularizedSVD(seed=124).apply(RATINGS, 3)

    np.testing.assert_array_equal(first[0], second[0])
    np.testing.assert_array_equal(first[1], second[1])
    assert not np.array_equal(first[0], other[0])


def test_calls_are_independent():
    svd = RegularizedSVD(seed=9)
    a = svd.apply(RATINGS, 2)
    b = svd.apply(RATINGS, 2)
    np.testing.assert_array_equal(a[0], b[0])


def test_input_forms_agree():
    frame = pd.DataFrame(RATINGS, columns=["user", "item", "rating"])
    from_list = RegularizedSVD(seed=5).apply(RATINGS, 2)
    from_frame = RegularizedSVD(seed=5).apply(frame, 2)
    from_view = RegularizedSVD(seed=5).apply(RatingDataset.from_array(RATINGS), 2)

    np.testing.assert_array_equal(from_list[0], from_frame[0])
    np.testing.assert_array_equal(from_list[1], from_view[1])


def test_empty_dataset_returns_initialization():
    svd = RegularizedSVD(seed=21)

    with pytest.warns(EmptyDatasetWarning):
        users, items = svd.apply([], 3, num_users=2, num_items=4)

    init_users, init_items = svd.initial_factors(3, 2, 4)
    np.testing.assert_array_equal(users, init_users)
    np.testing.assert_array_equal(items, init_items)


def test_out_of_range_index_rejected_before_training(monkeypatch):
    called = []
    monkeypatch.setattr(
        factorizer.StochasticOptimizer, "optimize", lambda *a, **k: called.append(True)
    )

    with pytest.raises(IndexOutOfRangeError):
        RegularizedSVD(seed=0).apply(RATINGS, 2, num_users=2)
    assert called == []


def test_gradient_failure_surfaces_from_apply(monkeypatch):
    def broken(self, parameters, index):
        raise IndexOutOfRangeError("corrupt observation")

    monkeypatch.setattr(RegularizedSVDFunction, "gradient", broken)

    with pytest.raises(IndexOutOfRangeError):
        RegularizedSVD(seed=0).apply(RATINGS, 2)


@pytest.mark.parametrize("rank", [0, -1, 1.5, True, "3"])
def test_invalid_rank(rank):
    with pytest.raises(InvalidArgumentError):
        RegularizedSVD().apply(RATINGS, rank)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"iterations": 0},
        {"alpha": -0.01},
        {"alpha": 0.0},
        {"lambda_": -1.0},
        {"alpha": float("inf")},
        {"alpha": float("nan")},
        {"lambda_": float("inf")},
    ],
)
def test_invalid_hyperparameters(kwargs):
    with pytest.raises(InvalidArgumentError):
        RegularizedSVD(**kwargs)


def test_decaying_step_variant_plugs_in():
    svd = RegularizedSVD(
        iterations=20, seed=3, step_cls=functools.partial(ExponentialDecaySGD, decay=0.9)
    )
    users, items = svd.apply(RATINGS, 2)
    assert users.shape == (2, 4)
    assert np.all(np.isfinite(items))


def test_two_rating_scenario_improves_every_epoch():
    data = [[0, 0, 5.0], [0, 1, 1.0]]
    svd = RegularizedSVD(iterations=50, alpha=0.01, lambda_=0.02, seed=0)
    function = RegularizedSVDFunction(RatingDataset.from_array(data), 2, svd.lambda_)

    init_users, init_items = svd.initial_factors(2, 1, 2)
    errors = [function.squared_error(np.hstack([init_users, init_items]))]

    users, items = svd.apply(
        data, 2, callback=lambda epoch, params: errors.append(function.squared_error(params))
    )

    assert len(errors) == 51
    assert all(later < earlier for earlier, later in zip(errors, errors[1:]))

    before = abs(predict(init_users, init_items, 0, 0) - 5.0)
    after = abs(predict(users, items, 0, 0) - 5.0)
    assert after < before
    assert errors[-1] == pytest.approx(function.squared_error(np.hstack([users, items])))


def test_predict_rejects_out_of_range_indices():
    users, items = RegularizedSVD(seed=0).apply(RATINGS, 2)

    assert predict(users, items, 3, 2) == pytest.approx(float(users[:, 3] @ items[:, 2]))
    for user, item in ((-1, 0), (4, 0), (0, -1), (0, 3)):
        with pytest.raises(IndexOutOfRangeError):
            predict(users, items, user, item)
