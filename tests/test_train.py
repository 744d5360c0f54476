import sys
from pathlib import Path

import pytest

pd = pytest.importorskip("pandas")
pytest.importorskip("joblib")

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from parvecmf import model_utils, train


@pytest.fixture
def inputs(tmp_path):
    ratings = tmp_path / "ratings.csv"
    pd.DataFrame(
        {
            "user_id": ["u1", "u1", "u2", "u3"],
            "item_id": ["a", "b", "b", "c"],
            "rating": [5, 3, 4, 1],
        }
    ).to_csv(ratings, index=False)

    users = tmp_path / "users.vec"
    users.write_text("3 2\nu1 0.1 0.2\nu2 0.0 0.3\nu3 -0.1 0.1\n", encoding="utf-8")
    items = tmp_path / "items.vec"
    items.write_text("3 2\na 0.2 0.2\nb 0.1 -0.1\nc 0.0 0.5\n", encoding="utf-8")
    return ratings, users, items


def test_main_trains_and_saves(tmp_path, inputs, capsys):
    ratings, users, items = inputs
    out = tmp_path / "model.joblib"

    code = train.main([
        str(ratings),
        "--user-embeddings", str(users),
        "--item-embeddings", str(items),
        "-k", "2", "-n", "3", "--lambda-u", "0.2", "--lambda-v", "0.2",
        "-t", "2", "--seed", "1", "-o", str(out),
    ])

    assert code == 0
    model = model_utils.load_factorization(out)
    assert model.user_factors.shape == (3, 2)
    assert model.item_factors.shape == (3, 2)
    assert "ParVecMF model saved" in capsys.readouterr().out


def test_main_reports_bad_embeddings(tmp_path, inputs):
    ratings, users, _ = inputs
    bad = tmp_path / "bad.vec"
    bad.write_text("3 2\na 0.2\n", encoding="utf-8")

    code = train.main([
        str(ratings),
        "--user-embeddings", str(users),
        "--item-embeddings", str(bad),
        "-k", "2", "-n", "1", "-o", str(tmp_path / "model.joblib"),
    ])

    assert code == 1
    assert not (tmp_path / "model.joblib").exists()


def test_main_rejects_invalid_hyperparameters(tmp_path, inputs):
    ratings, users, items = inputs

    code = train.main([
        str(ratings),
        "--user-embeddings", str(users),
        "--item-embeddings", str(items),
        "-k", "2", "--lambda-u", "-1",
    ])

    assert code == 2
