"""
Recommendation report writer: CSV and JSON output for ranked candidates and
aggregate statistics.

All functions are pure I/O over in-memory results. They are called by the
CLI; the scoring modules never write files.

Output files
------------
  <output_dir>/
    recommendations_user{user_id}_{algorithm}_{date}.csv
    recommendations_user{user_id}_{algorithm}_{date}.json
    stats_{date}.json
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional

from shopping_assistant.models.recommendation import Recommendation
from shopping_assistant.scoring.ranker import ScoredCandidate

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "v1"

_CSV_FIELDS = [
    "rank", "product_id", "name", "category", "brand", "price",
    "score", "algorithm", "confidence", "reason", "expires_at",
]


def recommendation_rows(
    candidates: list[ScoredCandidate],
    recommendations: list[Recommendation],
) -> list[dict[str, Any]]:
    """Pair each candidate with its recommendation record, in rank order.

    Raises:
        ValueError: If the lists are not aligned by product id.
    """
    if [c.product.id for c in candidates] != [r.product_id for r in recommendations]:
        raise ValueError("Candidates and recommendations must be aligned by product id.")

    rows = []
    for rank, (cand, rec) in enumerate(zip(candidates, recommendations), start=1):
        rows.append(
            {
                "rank":       rank,
                "product_id": rec.product_id,
                "name":       cand.product.name,
                "category":   cand.product.category,
                "brand":      cand.product.brand,
                "price":      cand.product.price,
                "score":      rec.score,
                "algorithm":  rec.algorithm.value,
                "confidence": rec.confidence_level().value,
                "reason":     cand.reason,
                "expires_at": rec.expires_at.isoformat(),
                "signals":    dict(cand.signals),
            }
        )
    return rows


def _report_stem(user_id: int, algorithm: str, run_date: date) -> str:
    return f"recommendations_user{user_id}_{algorithm}_{run_date}"


def write_recommendation_csv(
    candidates: list[ScoredCandidate],
    recommendations: list[Recommendation],
    output_dir: Path,
    user_id: int,
    algorithm: str,
    run_date: Optional[date] = None,
) -> Path:
    """Write ranked recommendations to a CSV file.

    Columns: rank, product_id, name, category, brand, price, score,
             algorithm, confidence, reason, expires_at.

    Returns:
        Path to the written CSV file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    csv_path = output_dir / f"{_report_stem(user_id, algorithm, run_date)}.csv"

    rows = recommendation_rows(candidates, recommendations)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)

    logger.info("Recommendation CSV written: %s (%d rows)", csv_path, len(rows))
    return csv_path


def write_recommendation_json(
    candidates: list[ScoredCandidate],
    recommendations: list[Recommendation],
    output_dir: Path,
    user_id: int,
    algorithm: str,
    run_date: Optional[date] = None,
) -> Path:
    """Write ranked recommendations to a structured JSON file.

    Args:
        candidates:      Ranked output of ``rank_candidates``.
        recommendations: Records built from ``candidates``, same order.
        output_dir:      Target directory (created if missing).
        user_id:         Recipient user; used in filename and metadata.
        algorithm:       Algorithm value; used in filename and metadata.
        run_date:        Date label. Defaults to today.

    Returns:
        Path to the written JSON file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"{_report_stem(user_id, algorithm, run_date)}.json"

    payload = {
        "schema_version":  SCHEMA_VERSION,
        "user_id":         user_id,
        "algorithm":       algorithm,
        "generated_at":    run_date.isoformat(),
        "recommendations": recommendation_rows(candidates, recommendations),
    }

    json_path.write_text(json.dumps(payload, indent=2, default=str))
    logger.info("Recommendation JSON written: %s", json_path)
    return json_path


def write_stats_json(
    stats: dict[str, Any],
    output_dir: Path,
    run_date: Optional[date] = None,
) -> Path:
    """Write aggregate statistics (already ``to_dict()``-ed) to JSON."""
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"stats_{run_date}.json"
    json_path.write_text(json.dumps(stats, indent=2, default=str))
    logger.info("Stats JSON written: %s", json_path)
    return json_path
