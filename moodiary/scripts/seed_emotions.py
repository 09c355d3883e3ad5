"""CLI command for seeding the default emotion tags.

Usage:
    flask seed-emotions                  # Insert missing defaults
    flask seed-emotions --with-profile   # Also create the placeholder profile
"""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext

from moodiary.extensions import db


@click.command("seed-emotions")
@click.option(
    "--with-profile/--no-profile",
    default=True,
    help="Create the placeholder profile from DEFAULT_PROFILE_ID if it is missing",
)
@with_appcontext
def seed_emotions_command(with_profile: bool):
    """Insert the ten default emotion tags. Safe to run repeatedly."""
    from moodiary.core.profiles.services import ensure_profile
    from moodiary.domains.emotions.services.emotion_service import seed_default_tags

    if with_profile:
        profile_id = current_app.config.get("DEFAULT_PROFILE_ID")
        if profile_id:
            ensure_profile(profile_id, display_name="Default profile")
            db.session.commit()
            click.echo(f"Profile {profile_id} ready")

    created = seed_default_tags()
    click.echo(f"Seeded {created} default emotion tag(s)")


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(seed_emotions_command)
