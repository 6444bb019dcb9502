"""CLI tools for Work Hub administration."""

import click

from workhub.core.errors import WorkHubError
from workhub.core.role_policy import Actor
from workhub.core.security import create_access_token
from workhub.core.structured_logging import configure_logging
from workhub.db.base import Base
from workhub.db.enums import SYSTEM_ACTOR, Role
from workhub.db.session import SessionLocal, engine
from workhub.services import alert_service, user_service

ROLE_CHOICES = click.Choice([r.value for r in Role])


@click.group()
def cli():
    """Work Hub CLI tools."""
    configure_logging()


@cli.command("init-db")
def init_db():
    """
    Create all tables directly from the models.

    For local development and SQLite; production schemas go through alembic.
    """
    import workhub.db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    click.echo("✓ Database tables created")


@cli.command("create-user")
@click.option("--name", required=True, help="Display name (recorded as project creator)")
@click.option("--email", required=True, help="Email address")
@click.option("--role", required=True, type=ROLE_CHOICES, help="Role value, e.g. ROLE_EXECUTIVE")
@click.option("--crm-id", type=int, default=None, help="Company record id (clients only)")
def create_user(name: str, email: str, role: str, crm_id: int | None):
    """
    Create a user.

    Example:
        python -m workhub.cli create-user --name "Alice" --email alice@example.com --role ROLE_EXECUTIVE
    """
    db = SessionLocal()
    try:
        user = user_service.create_user(db, name, email, Role(role), crm_id)
        click.echo(f"✓ Created user {user.email} (id={user.id}, role={user.role})")
    except WorkHubError as e:
        db.rollback()
        raise click.ClickException(e.message)
    finally:
        db.close()


@cli.command("set-role")
@click.option("--email", required=True, help="User email")
@click.option("--role", required=True, type=ROLE_CHOICES, help="New role value")
def set_role(email: str, role: str):
    """Change a user's role (operator override, revokes their tokens)."""
    db = SessionLocal()
    try:
        user = user_service.get_by_email(db, email)
        if user is None:
            raise click.ClickException(f"No user with email {email}")
        operator = Actor(name=SYSTEM_ACTOR, role=Role.SUPER_ADMIN.value)
        user = user_service.set_role(db, user, Role(role), operator)
        click.echo(f"✓ {user.email} is now {user.role}")
    except WorkHubError as e:
        db.rollback()
        raise click.ClickException(e.message)
    finally:
        db.close()


@cli.command("issue-token")
@click.option("--email", required=True, help="User email")
def issue_token(email: str):
    """Print a bearer token for an active user."""
    db = SessionLocal()
    try:
        user = user_service.get_by_email(db, email)
        if user is None or not user.is_active:
            raise click.ClickException(f"No active user with email {email}")
        click.echo(create_access_token(user.id, user.role, user.token_version))
    finally:
        db.close()


@cli.command("scan-alerts")
def scan_alerts():
    """Run the delay alert scan once."""
    db = SessionLocal()
    try:
        created = alert_service.generate_delay_alerts(db)
        click.echo(f"✓ Delay scan complete: {created} new alert(s)")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    cli()
