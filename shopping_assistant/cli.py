"""
Shopping Assistant recommender: CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load and validate input records (malformed records are logged and skipped).
  4. Score / aggregate.
  5. Report result to stdout (and to files under the output directory).

Install and run::

    pip install -e .
    shopping-assistant --help
    shopping-assistant validate-config
    shopping-assistant score --preferences prefs.json --candidates products.json \\
        --algorithm hybrid --interactions interactions.json
    shopping-assistant stats --recommendations recs.json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="shopping-assistant",
    help="Shopping assistant recommendation scoring engine.",
    add_completion=False,
)

logger = logging.getLogger(__name__)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from shopping_assistant.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from shopping_assistant.utils.logging import configure_logging
    configure_logging(config.logging)


def _read_json_or_exit(path_str: str) -> Any:
    path = Path(path_str)
    if not path.exists():
        typer.echo(f"[ERROR] File not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        typer.echo(f"[ERROR] JSON parse error in {path}: {exc}", err=True)
        raise typer.Exit(code=1)


def _load_records_or_exit(
    path_str: str, model, label: str, context: Optional[dict] = None
) -> list:
    """Validate every object in a JSON array file as ``model``.

    Invalid records are logged and skipped; the command exits 1 when the file
    is not an array or no valid record remains.
    """
    from pydantic import ValidationError

    raw_records = _read_json_or_exit(path_str)
    if not isinstance(raw_records, list):
        typer.echo(f"[ERROR] {label} file must contain a JSON array.", err=True)
        raise typer.Exit(code=1)

    records = []
    for idx, raw in enumerate(raw_records):
        if not isinstance(raw, dict):
            logger.warning("Skipping %s #%d: not a JSON object", label, idx)
            continue
        try:
            records.append(model.model_validate(raw, context=context))
        except ValidationError as exc:
            logger.warning(
                "Skipping %s #%d: %d validation error(s): %s",
                label, idx, exc.error_count(), exc.errors()[0]["msg"],
            )

    if not records:
        typer.echo(f"[ERROR] No valid {label} records in {path_str}.", err=True)
        raise typer.Exit(code=1)

    n_skipped = len(raw_records) - len(records)
    if n_skipped:
        typer.echo(f"  Skipped {n_skipped} malformed {label} record(s).")
    return records


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    weights = ", ".join(f"{k}={v}" for k, v in config.scoring.hybrid_weights.items())

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Min score:        {config.scoring.min_score}")
    typer.echo(f"  Reason floor:     {config.scoring.reason_floor}")
    typer.echo(f"  Hybrid weights:   {weights}")
    typer.echo(f"  Default TTL (h):  {config.recommendations.default_ttl_hours}")
    typer.echo(f"  Output dir:       {config.output.output_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("score")
def score(
    preferences_file: str = typer.Option(
        ...,
        "--preferences",
        help="JSON object with the user's preferences.",
    ),
    candidates_file: str = typer.Option(
        ...,
        "--candidates",
        help="JSON array of candidate products.",
    ),
    algorithm: str = typer.Option(
        ...,
        "--algorithm",
        "-a",
        help="collaborative | content-based | hybrid | popularity",
    ),
    interactions_file: Optional[str] = typer.Option(
        None,
        "--interactions",
        help="JSON array of interactions (all users).",
    ),
    user_id: Optional[int] = typer.Option(
        None,
        "--user-id",
        help="Override the user id from the preferences file.",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        min=0,
        help="Max recommendations (default: config scoring.default_limit).",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Report directory (default: config output.output_dir).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Score candidate products for one user and write ranked recommendations.

    \b
    Writes recommendations_user{id}_{algorithm}_{date}.json and .csv
    to the output directory.
    """
    from pydantic import ValidationError

    from shopping_assistant.models.interaction import Interaction
    from shopping_assistant.models.preferences import UserPreferences
    from shopping_assistant.models.product import Product
    from shopping_assistant.scoring.ranker import build_recommendations, rank_candidates
    from shopping_assistant.scoring.reporter import (
        write_recommendation_csv,
        write_recommendation_json,
    )
    from shopping_assistant.taxonomy.catalog_taxonomy import RecommendationAlgorithm

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        algo = RecommendationAlgorithm(algorithm)
    except ValueError:
        valid = ", ".join(a.value for a in RecommendationAlgorithm)
        typer.echo(f"[ERROR] Unknown algorithm '{algorithm}'. Use one of: {valid}.", err=True)
        raise typer.Exit(code=1)

    raw_prefs = _read_json_or_exit(preferences_file)
    if not isinstance(raw_prefs, dict):
        typer.echo("[ERROR] Preferences file must contain a JSON object.", err=True)
        raise typer.Exit(code=1)
    if user_id is not None:
        raw_prefs = {**raw_prefs, "user_id": user_id}
    try:
        preferences = UserPreferences.model_validate(raw_prefs)
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid preferences: {exc}", err=True)
        raise typer.Exit(code=1)

    products = _load_records_or_exit(candidates_file, Product, "product")
    interactions = (
        _load_records_or_exit(interactions_file, Interaction, "interaction")
        if interactions_file else []
    )

    candidates = rank_candidates(
        preferences,
        products,
        algo,
        interactions=interactions,
        config=config,
        limit=limit,
    )
    recommendations = build_recommendations(candidates, preferences.user_id, config)

    typer.echo(
        f"Scored {len(products)} candidate(s) for user {preferences.user_id} "
        f"with {algo.value}: {len(candidates)} recommended."
    )
    for rank, (cand, rec) in enumerate(zip(candidates, recommendations), start=1):
        typer.echo(
            f"  {rank:>2}. product {rec.product_id:<6} score={rec.score:.3f} "
            f"[{rec.confidence_level().value}] {cand.reason}"
        )

    out = Path(output_dir or config.output.output_dir)
    json_path = write_recommendation_json(
        candidates, recommendations, out, preferences.user_id, algo.value
    )
    csv_path = write_recommendation_csv(
        candidates, recommendations, out, preferences.user_id, algo.value
    )
    typer.echo(f"  JSON: {json_path}")
    typer.echo(f"  CSV:  {csv_path}")
    typer.echo("[OK] Scoring complete.")


@app.command("stats")
def stats(
    recommendations_file: str = typer.Option(
        ...,
        "--recommendations",
        help="JSON array of recommendation records.",
    ),
    interactions_file: Optional[str] = typer.Option(
        None,
        "--interactions",
        help="JSON array of interactions to summarize as well.",
    ),
    merge_duplicates: bool = typer.Option(
        False,
        "--merge-duplicates",
        help="Keep one record per (user, product), preferring weightier algorithms.",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Also write stats_{date}.json to this directory.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print recommendation (and optionally interaction) statistics as JSON.

    \b
    Quality counts use the [recommendations] thresholds from config:
    high_quality_threshold, low_quality_threshold, fresh_max_age_hours.
    """
    from shopping_assistant.models.interaction import Interaction
    from shopping_assistant.models.recommendation import (
        STORED_RECORD_CONTEXT,
        Recommendation,
    )
    from shopping_assistant.scoring.reporter import write_stats_json
    from shopping_assistant.scoring.stats import (
        interaction_stats,
        merge_proposals,
        quality_stats,
        recommendation_stats,
    )
    from shopping_assistant.utils.time_utils import utcnow

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    rec_cfg = config.recommendations

    recommendations = _load_records_or_exit(
        recommendations_file, Recommendation, "recommendation",
        context=STORED_RECORD_CONTEXT,
    )
    if merge_duplicates:
        merged = merge_proposals(recommendations)
        typer.echo(f"  Merged {len(recommendations) - len(merged)} duplicate proposal(s).")
        recommendations = merged

    now = utcnow()
    summary: dict[str, Any] = {
        "recommendations": recommendation_stats(
            recommendations,
            expiring_soon_hours=rec_cfg.expiring_soon_hours,
            now=now,
        ).to_dict(),
        "quality": quality_stats(
            recommendations,
            high_threshold=rec_cfg.high_quality_threshold,
            low_threshold=rec_cfg.low_quality_threshold,
            fresh_max_age_hours=rec_cfg.fresh_max_age_hours,
            now=now,
        ).to_dict(),
    }
    if interactions_file:
        interactions = _load_records_or_exit(interactions_file, Interaction, "interaction")
        summary["interactions"] = interaction_stats(interactions).to_dict()

    typer.echo(json.dumps(summary, indent=2, default=str))

    if output_dir:
        path = write_stats_json(summary, Path(output_dir))
        typer.echo(f"  Stats: {path}")
    typer.echo("[OK] Stats complete.")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
