import sys
from pathlib import Path

import pytest

np = pytest.importorskip("numpy")

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from parvecmf.data import IdMapping
from parvecmf.embeddings import load_embeddings
from parvecmf.exceptions import DimensionMismatchError, EmbeddingParseError
from parvecmf.features import Features


@pytest.fixture
def mapping():
    return IdMapping.from_ids(["alice", "bob", "carol"])


def _write(tmp_path, text):
    path = tmp_path / "vectors.txt"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_embeddings_skips_header_and_maps_ids(tmp_path, mapping):
    path = _write(tmp_path, "3 3\nbob 1 2 3\n\nalice -0.5 0.25 1e-3\n")

    vectors = load_embeddings(path, mapping, 3)

    assert set(vectors) == {0, 1}
    np.testing.assert_allclose(vectors[1], [1.0, 2.0, 3.0])
    np.testing.assert_allclose(vectors[0], [-0.5, 0.25, 0.001])


def test_free_text_header_is_ignored(tmp_path, mapping):
    path = _write(tmp_path, "paragraph vectors for users\ncarol 0 0 1\n")

    vectors = load_embeddings(path, mapping, 3)

    np.testing.assert_allclose(vectors[2], [0.0, 0.0, 1.0])


@pytest.mark.parametrize(
    "body,line_no,reason",
    [
        (b"alice 1 2\n", 2, "expected 4 tokens"),
        (b"alice 1 2 3 4\n", 2, "expected 4 tokens"),
        (b"alice 1 two 3\n", 2, "non-numeric"),
        (b"alice 1 nan 3\n", 2, "non-finite"),
        (b"alice 1 2 3\ndave 1 2 3\n", 3, "unknown id"),
        (b"bob 1 2 3\nbob 4 5 6\n", 3, "duplicate id"),
        (b"bob 1 2 3\nalice 1 2 \xff\n", 3, "invalid UTF-8"),
    ],
)
def test_malformed_lines_are_reported(tmp_path, mapping, body, line_no, reason):
    path = tmp_path / "vectors.txt"
    path.write_bytes(b"header\n" + body)

    with pytest.raises(EmbeddingParseError) as info:
        load_embeddings(path, mapping, 3)

    assert info.value.line_no == line_no
    assert reason in info.value.reason
    assert str(path) in str(info.value)


def test_non_string_ids_match_their_text_form(tmp_path):
    path = _write(tmp_path, "2 2\n7 1 2\n42 3 4\n")

    vectors = load_embeddings(path, IdMapping.from_ids([42, 7]), 2)

    np.testing.assert_allclose(vectors[0], [3.0, 4.0])
    np.testing.assert_allclose(vectors[1], [1.0, 2.0])


def test_ids_that_collide_as_text_are_rejected(tmp_path):
    path = _write(tmp_path, "header\n7 1 2\n")

    with pytest.raises(EmbeddingParseError, match="not distinct"):
        load_embeddings(path, IdMapping.from_ids([7, "7"]), 2)


def test_header_dimension_must_match(tmp_path, mapping):
    path = _write(tmp_path, "3 5\nalice 1 2 3 4 5\n")

    with pytest.raises(EmbeddingParseError) as info:
        load_embeddings(path, mapping, 3)

    assert info.value.line_no == 1


def test_missing_file_is_a_parse_error(tmp_path, mapping):
    with pytest.raises(EmbeddingParseError) as info:
        load_embeddings(tmp_path / "nope.txt", mapping, 3)

    assert isinstance(info.value.__cause__, OSError)


def test_feature_store_fills_missing_rows_with_zeros(caplog):
    users = {0: np.array([1.0, 2.0]), 2: np.array([3.0, 4.0])}
    items = {0: np.array([0.5, 0.5])}

    with caplog.at_level("WARNING"):
        features = Features(3, 2, 2, users, items, rng=np.random.default_rng(0))

    np.testing.assert_allclose(features.user_embedding(1), [0.0, 0.0])
    np.testing.assert_allclose(features.item_embedding(1), [0.0, 0.0])
    assert features.missing_user_embeddings == 1
    assert features.missing_item_embeddings == 1
    assert "no paragraph vector" in caplog.text


def test_feature_store_initial_state():
    features = Features(4, 5, 3, {}, {}, rng=np.random.default_rng(2))

    assert features.U.shape == (4, 3) and not features.U.any()
    assert features.V.shape == (5, 3)
    assert np.all((features.V >= 0.0) & (features.V < 0.1))


def test_feature_store_rejects_bad_rows():
    features = Features(2, 2, 3, {}, {}, rng=np.random.default_rng(0))

    with pytest.raises(DimensionMismatchError):
        features.set_user_row(0, np.ones(2))

    with pytest.raises(DimensionMismatchError):
        Features(2, 2, 3, {0: np.ones(4)}, {})

    with pytest.raises(DimensionMismatchError):
        Features(2, 2, 3, {5: np.ones(3)}, {})

    features.set_item_row(1, [1.0, 2.0, 3.0])
    np.testing.assert_allclose(features.item_feature_row(1), [1.0, 2.0, 3.0])
