"""
Train a ParVecMF factorization from a ratings file and two paragraph vector files.

Steps:
1. Read ratings (csv / tsv / parquet with user_id, item_id, rating columns)
2. Load user + item paragraph vectors
3. Run the alternating solver
4. Save parvecmf.joblib
"""

import argparse
import logging
import sys

from pydantic import ValidationError

from config.settings import settings
from parvecmf.data import load_ratings
from parvecmf.exceptions import ParVecMFError
from parvecmf.factorizer import FactorizerConfig, ParVecMFFactorizer
from parvecmf.model_utils import ARTIFACT_DIR, save_factorization


def setup_logging(log_file: str = "") -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s",
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Train a ParVecMF factorization.")
    p.add_argument("ratings", help="ratings file (.csv, .tsv or .parquet)")
    p.add_argument("--user-embeddings", help="user paragraph vector file")
    p.add_argument("--item-embeddings", help="item paragraph vector file")
    p.add_argument("--user-col", default="user_id")
    p.add_argument("--item-col", default="item_id")
    p.add_argument("--rating-col", default="rating")
    p.add_argument("-k", "--features", type=int, dest="num_features")
    p.add_argument("-n", "--iterations", type=int, dest="num_iterations")
    p.add_argument("--lambda-u", type=float)
    p.add_argument("--lambda-v", type=float)
    p.add_argument("-c", "--confidence", type=float)
    p.add_argument("-t", "--threads", type=int, dest="num_threads")
    p.add_argument("--phase-timeout", type=float, help="seconds; fail the run if a phase takes longer")
    p.add_argument("--seed", type=int)
    p.add_argument("-o", "--output", default=str(ARTIFACT_DIR / "parvecmf.joblib"))
    p.add_argument("--log-file", default=settings.LOG_FILE)
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file)
    log = logging.getLogger("parvecmf.train")

    try:
        config = FactorizerConfig.from_settings(
            num_features=args.num_features,
            num_iterations=args.num_iterations,
            lambda_u=args.lambda_u,
            lambda_v=args.lambda_v,
            confidence=args.confidence,
            num_threads=args.num_threads,
            user_embeddings_path=args.user_embeddings,
            item_embeddings_path=args.item_embeddings,
            phase_timeout=args.phase_timeout,
            seed=args.seed,
        )
    except ValidationError as exc:
        log.error("Invalid configuration:\n%s", exc)
        return 2

    try:
        source = load_ratings(args.ratings, args.user_col, args.item_col, args.rating_col)
        factorization = ParVecMFFactorizer(source, config).factorize()
        artifact = save_factorization(factorization, args.output)
    except (ParVecMFError, OSError, KeyError, ValueError) as exc:
        log.exception("Training failed: %s", exc)
        return 1

    print("ParVecMF model saved:", artifact)
    print(f"Users: {factorization.user_factors.shape[0]}  Items: {factorization.item_factors.shape[0]}")
    print(f"U sum: {factorization.user_sum:.6f}  V sum: {factorization.item_sum:.6f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
