"""
data.py
Rating source + id mapping collaborators for the factorizer.

This module handles:
  • The RatingSource contract the factorizer reads ratings through
  • An in-memory RatingSource (triples or a pandas DataFrame)
  • Loading interactions from CSV / parquet
  • Mapping opaque user / item ids to dense indices
  • Assembling the per-row sparse rating vectors (scipy CSR)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Hashable, Iterable, List, Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd
import scipy.sparse as sp

from .exceptions import UnknownIdError

LOGGER = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# RATING SOURCE CONTRACT
# ─────────────────────────────────────────────

class RatingSource(Protocol):
    def ids_of_users(self) -> Sequence[Hashable]: ...

    def ids_of_items(self) -> Sequence[Hashable]: ...

    def ratings_from(self, user_id) -> Sequence[Tuple[Hashable, float]]: ...

    def ratings_for(self, item_id) -> Sequence[Tuple[Hashable, float]]: ...


class InMemoryRatingSource:
    """
    RatingSource over (user, item, rating) triples held in memory.

    Users and items are listed in first-seen order. Extra ids passed through
    `user_ids` / `item_ids` are listed too, with no ratings.
    """

    def __init__(
        self,
        triples: Iterable[Tuple[Hashable, Hashable, float]],
        user_ids: Optional[Iterable[Hashable]] = None,
        item_ids: Optional[Iterable[Hashable]] = None,
    ):
        self._by_user: Dict[Hashable, List[Tuple[Hashable, float]]] = defaultdict(list)
        self._by_item: Dict[Hashable, List[Tuple[Hashable, float]]] = defaultdict(list)
        users: Dict[Hashable, None] = {}
        items: Dict[Hashable, None] = {}

        for uid in user_ids or ():
            users.setdefault(uid)
        for iid in item_ids or ():
            items.setdefault(iid)

        for uid, iid, rating in triples:
            rating = float(rating)
            users.setdefault(uid)
            items.setdefault(iid)
            self._by_user[uid].append((iid, rating))
            self._by_item[iid].append((uid, rating))

        self._users = list(users)
        self._items = list(items)

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        user_col: str = "user_id",
        item_col: str = "item_id",
        rating_col: str = "rating",
    ) -> "InMemoryRatingSource":
        missing = [c for c in (user_col, item_col, rating_col) if c not in df.columns]
        if missing:
            raise ValueError(f"Ratings frame is missing columns: {missing}")

        triples = zip(
            df[user_col].astype(str),
            df[item_col].astype(str),
            pd.to_numeric(df[rating_col], errors="raise").astype(float),
        )
        return cls(triples)

    def ids_of_users(self):
        return list(self._users)

    def ids_of_items(self):
        return list(self._items)

    def ratings_from(self, user_id):
        return list(self._by_user.get(user_id, ()))

    def ratings_for(self, item_id):
        return list(self._by_item.get(item_id, ()))

    @property
    def num_ratings(self) -> int:
        return sum(len(v) for v in self._by_user.values())


def load_ratings(
    path: Path | str,
    user_col: str = "user_id",
    item_col: str = "item_id",
    rating_col: str = "rating",
) -> InMemoryRatingSource:
    """Read a CSV or parquet interactions file into an InMemoryRatingSource."""
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Ratings file not found: {path}")

    if path.suffix == ".parquet":
        df = pd.read_parquet(path)
    elif path.suffix in (".csv", ".tsv"):
        df = pd.read_csv(path, sep="\t" if path.suffix == ".tsv" else ",")
    else:
        raise ValueError("Ratings must be parquet, csv or tsv")

    if df.empty:
        raise ValueError(f"Ratings file is empty: {path}")

    source = InMemoryRatingSource.from_frame(df, user_col, item_col, rating_col)
    LOGGER.info(
        "Loaded %d ratings (%d users, %d items) from %s",
        source.num_ratings, len(source.ids_of_users()), len(source.ids_of_items()), path,
    )
    return source


# ─────────────────────────────────────────────
# ID MAPPING
# ─────────────────────────────────────────────

class IdMapping:
    """Bidirectional map between opaque ids and dense indices [0, n)."""

    def __init__(self, codes: Dict[Hashable, int]):
        self._codes = dict(codes)
        if sorted(self._codes.values()) != list(range(len(self._codes))):
            raise ValueError("Id codes must be a permutation of 0..n-1")

        self._ids: List[Hashable] = [None] * len(self._codes)
        for key, idx in self._codes.items():
            self._ids[idx] = key

    @classmethod
    def from_ids(cls, ids: Iterable[Hashable]) -> "IdMapping":
        codes: Dict[Hashable, int] = {}
        for key in ids:
            if key in codes:
                raise ValueError(f"Duplicate id: {key!r}")
            codes[key] = len(codes)
        return cls(codes)

    def index_of(self, key) -> int:
        try:
            return self._codes[key]
        except KeyError:
            raise UnknownIdError(key) from None

    def id_of(self, index: int):
        if not 0 <= index < len(self._ids):
            raise IndexError(f"Dense index out of range: {index}")
        return self._ids[index]

    @property
    def ids(self) -> List[Hashable]:
        return list(self._ids)

    @property
    def codes(self) -> Dict[Hashable, int]:
        return dict(self._codes)

    def __len__(self):
        return len(self._ids)

    def __contains__(self, key):
        return key in self._codes


# ─────────────────────────────────────────────
# SPARSE RATING ROWS
# ─────────────────────────────────────────────

def rating_matrix(
    source: RatingSource,
    row_ids: IdMapping,
    col_ids: IdMapping,
    by_user: bool = True,
) -> sp.csr_matrix:
    """
    Build the CSR matrix whose row r is the sparse rating vector of dense index r.

    User rows come from `ratings_from`, item rows from `ratings_for`. Every
    dense index gets exactly one row, empty when it has no ratings. A pair
    reported more than once keeps its last rating.
    """
    fetch = source.ratings_from if by_user else source.ratings_for

    rows: List[int] = []
    cols: List[int] = []
    vals: List[float] = []

    for row in range(len(row_ids)):
        entries: Dict[int, float] = {}
        for other, rating in fetch(row_ids.id_of(row)):
            entries[col_ids.index_of(other)] = float(rating)

        rows.extend([row] * len(entries))
        cols.extend(entries.keys())
        vals.extend(entries.values())

    return sp.coo_matrix(
        (
            np.asarray(vals, dtype=np.float64),
            (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64)),
        ),
        shape=(len(row_ids), len(col_ids)),
    ).tocsr()
