"""
embeddings.py
Paragraph vector loading.

File format (as written by doc2vec / word2vec text exports):

    <header line, skipped>
    <id> <f_1> <f_2> ... <f_k>
    ...

When the header is the "<count> <dim>" pair those tools write, <dim> must
match the configured number of features. Every malformed line is reported
as an EmbeddingParseError; nothing is silently dropped.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict

import numpy as np

from .data import IdMapping
from .exceptions import EmbeddingParseError

LOGGER = logging.getLogger(__name__)


def _check_header(path, header: str, num_features: int):
    parts = header.split()
    if len(parts) != 2:
        return
    try:
        count, dim = int(parts[0]), int(parts[1])
    except ValueError:
        return
    if dim != num_features:
        raise EmbeddingParseError(
            path, 1, f"header declares {count} vectors of dimension {dim}, expected {num_features}"
        )


def parse_line(line: str, num_features: int):
    """Split one vector line into (id, values); raises ValueError on bad input."""
    parts = line.split()
    if len(parts) != num_features + 1:
        raise ValueError(f"expected {num_features + 1} tokens, got {len(parts)}")

    key = parts[0]
    try:
        values = [float(tok) for tok in parts[1:]]
    except ValueError as exc:
        raise ValueError(f"non-numeric value ({exc})") from None

    if not all(math.isfinite(v) for v in values):
        raise ValueError("non-finite value")

    return key, np.asarray(values, dtype=np.float64)


def _text_codes(path, mapping: IdMapping) -> Dict[str, int]:
    """Index the mapping by the text form of its ids, as they appear in the file."""
    codes = {str(key): idx for key, idx in mapping.codes.items()}
    if len(codes) != len(mapping):
        raise EmbeddingParseError(path, None, "ids of the mapping are not distinct as text")
    return codes


def load_embeddings(path: Path | str, mapping: IdMapping, num_features: int) -> Dict[int, np.ndarray]:
    """
    Load the vectors of a paragraph vector file, keyed by dense index.

    Ids are resolved through `mapping` by their text form, so non-string ids
    (e.g. integers) match too. An id it does not know, a repeated id, a wrong
    token count, a non-numeric token or bytes that are not UTF-8 all raise
    EmbeddingParseError.
    """
    path = Path(path)
    codes = _text_codes(path, mapping)
    vectors: Dict[int, np.ndarray] = {}

    try:
        with open(path, "rb") as f:
            header = f.readline().decode("utf-8", errors="replace")
            _check_header(path, header, num_features)

            for line_no, raw in enumerate(f, start=2):
                try:
                    line = raw.decode("utf-8")
                except UnicodeDecodeError as exc:
                    raise EmbeddingParseError(path, line_no, f"invalid UTF-8 ({exc})") from exc

                if not line.strip():
                    continue

                try:
                    key, values = parse_line(line, num_features)
                except ValueError as exc:
                    raise EmbeddingParseError(path, line_no, str(exc)) from None

                if key not in codes:
                    raise EmbeddingParseError(path, line_no, f"unknown id {key!r}")
                idx = codes[key]

                if idx in vectors:
                    raise EmbeddingParseError(path, line_no, f"duplicate id {key!r}")

                vectors[idx] = values
    except OSError as exc:
        raise EmbeddingParseError(path, None, f"cannot read file ({exc})") from exc

    LOGGER.info("Loaded %d paragraph vectors from %s", len(vectors), path)
    return vectors
