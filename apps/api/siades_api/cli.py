"""CLI commands for SIADes API."""

import click
import uvicorn

from siades_api.db.base import Base
from siades_api.db.seed import seed_all
from siades_api.db.session import SessionLocal, engine
from siades_api.settings import get_settings

import siades_api.models  # noqa: F401  (register tables)


@click.group()
def cli():
    """SIADes API CLI."""
    pass


@cli.command("init-db")
def init_db():
    """Create tables directly (development only; use Alembic elsewhere)."""
    Base.metadata.create_all(engine)
    click.echo("✓ Tables created.")


@cli.command()
def seed():
    """Seed initial data."""
    click.echo("Seeding initial data...")
    db = SessionLocal()
    try:
        seed_all(db)
        click.echo("✓ Seed data created.")
    except Exception as e:
        click.echo(f"✗ Error seeding data: {e}", err=True)
        db.rollback()
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
@click.option("--reload", is_flag=True, help="Reload on code changes (development only).")
def serve(reload):
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "siades_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=reload and settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    cli()
