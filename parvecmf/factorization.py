"""Factorization result and the abstract capability that produces one."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .data import IdMapping


@dataclass
class Factorization:
    user_factors: np.ndarray
    item_factors: np.ndarray
    user_ids: IdMapping
    item_ids: IdMapping

    def user_features(self, user_id) -> np.ndarray:
        return self.user_factors[self.user_ids.index_of(user_id)]

    def item_features(self, item_id) -> np.ndarray:
        return self.item_factors[self.item_ids.index_of(item_id)]

    def estimate(self, user_id, item_id) -> float:
        """Predicted rating: dot product of the user and item factors."""
        return float(self.user_features(user_id) @ self.item_features(item_id))

    def top_items(self, user_id, k: int = 10) -> List[Tuple[object, float]]:
        """Return the k highest scoring (item_id, score) pairs, best first."""
        uidx = self.user_ids.index_of(user_id)
        # item_factors: (n_items, factors), user_factors: (n_users, factors)
        scores = self.item_factors @ self.user_factors[uidx]

        k = min(k, len(scores))
        if k <= 0:
            return []

        top = np.argpartition(-scores, k - 1)[:k]
        order = top[np.argsort(-scores[top])]
        return [(self.item_ids.id_of(int(i)), float(scores[i])) for i in order]

    @property
    def user_sum(self) -> float:
        return float(self.user_factors.sum())

    @property
    def item_sum(self) -> float:
        return float(self.item_factors.sum())


class Factorizer(ABC):
    """Anything that turns a rating source into user and item factor matrices."""

    @abstractmethod
    def factorize(self) -> Factorization:
        raise NotImplementedError
