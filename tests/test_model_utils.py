import sys
from pathlib import Path

import pytest

np = pytest.importorskip("numpy")
pytest.importorskip("joblib")

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from parvecmf import model_utils
from parvecmf.data import IdMapping
from parvecmf.exceptions import UnknownIdError
from parvecmf.factorization import Factorization


@pytest.fixture
def factorization():
    return Factorization(
        user_factors=np.array([[1.0, 0.0], [0.0, 2.0]]),
        item_factors=np.array([[3.0, 1.0], [0.5, 0.5], [-1.0, 4.0]]),
        user_ids=IdMapping.from_ids(["ann", "ben"]),
        item_ids=IdMapping.from_ids(["x", "y", "z"]),
    )


def test_estimate_and_top_items(factorization):
    assert factorization.estimate("ann", "x") == pytest.approx(3.0)
    assert factorization.estimate("ben", "z") == pytest.approx(8.0)

    assert [i for i, _ in factorization.top_items("ann", k=2)] == ["x", "y"]
    assert [i for i, _ in factorization.top_items("ben", k=10)] == ["z", "x", "y"]
    assert factorization.top_items("ben", k=0) == []

    with pytest.raises(UnknownIdError):
        factorization.top_items("nobody")


def test_sums(factorization):
    assert factorization.user_sum == pytest.approx(3.0)
    assert factorization.item_sum == pytest.approx(8.0)


def test_save_and_load_factorization(tmp_path, factorization):
    artifact = model_utils.save_factorization(factorization, tmp_path / "out" / "model.joblib")

    assert artifact.exists()
    loaded = model_utils.load_factorization(artifact)

    np.testing.assert_array_equal(loaded.user_factors, factorization.user_factors)
    np.testing.assert_array_equal(loaded.item_factors, factorization.item_factors)
    assert loaded.item_ids.ids == ["x", "y", "z"]
    assert loaded.estimate("ben", "z") == pytest.approx(8.0)


def test_load_missing_artifact(tmp_path):
    with pytest.raises(model_utils.MissingArtifactError):
        model_utils.load_factorization(tmp_path / "absent.joblib")
