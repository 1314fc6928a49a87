"""
Flask CLI commands for checking the scoring and storage setup.

Usage:
    flask score-text "some message"     # Score one message and print its tier
    flask user-history <user-id>        # List a user's saved analyses
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext


@click.command("score-text")
@click.argument("text")
@with_appcontext
def score_text_command(text: str) -> None:
    """Score TEXT with the configured comment analyzer."""
    from toxicity_dashboard.extensions import get_scorer
    from toxicity_dashboard.services.perspective import ScoringError
    from toxicity_dashboard.services.toxicity import format_score, toxicity_tier

    if not text.strip():
        click.echo("Error: text is empty.")
        raise SystemExit(1)

    try:
        score = get_scorer().score(text)
    except ScoringError as e:
        click.echo(f"Analysis failed: {e}")
        raise SystemExit(1)

    click.echo(f"Raw Score: {format_score(score)}")
    click.echo(f"Assessment: {toxicity_tier(score).label}")


@click.command("user-history")
@click.argument("user_id")
@with_appcontext
def user_history_command(user_id: str) -> None:
    """Print saved analyses owned by USER_ID."""
    from toxicity_dashboard.extensions import get_store
    from toxicity_dashboard.services.moderation_records import to_history_entry

    store = get_store()
    if store is None:
        click.echo("Error: Supabase admin client not configured (SUPABASE_SERVICE_ROLE_KEY missing).")
        raise SystemExit(1)

    records = store.list_records(user_id)
    if not records:
        click.echo("No saved analyses for this user.")
        return

    click.echo(f"Found {len(records)} saved analysis(es).")
    for record in records:
        entry = to_history_entry(record)
        click.echo(f"{entry.timestamp}  {entry.score_display:>6}  {entry.tier.label:<16} {entry.message}")


def register_cli(app) -> None:
    app.cli.add_command(score_text_command)
    app.cli.add_command(user_history_command)
