"""
Shared CLI plumbing: console, engine handle, admin gate and error display.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import NoReturn

import typer
from rich.console import Console

from certpath.config import Settings, get_settings
from certpath.core.auth import verify_admin
from certpath.core.errors import CertpathError
from certpath.engine import ContentEngine
from certpath.sync.remote import RemoteSync, create_remote_sync

console = Console()


@dataclass
class CliState:
    """Per-invocation state stored on the typer context."""

    settings: Settings
    _engine: ContentEngine | None = field(default=None, repr=False)
    remote: RemoteSync | None = field(default=None, repr=False)

    @property
    def engine(self) -> ContentEngine:
        if self._engine is None:
            self._engine = ContentEngine.from_settings(self.settings)
            self.remote = create_remote_sync(self._engine, self.settings)
            if self.remote is not None and self.settings.sync_on_startup:
                self.remote.start()
        return self._engine


def get_state(ctx: typer.Context) -> CliState:
    if ctx.obj is None:
        ctx.obj = CliState(settings=get_settings())
    return ctx.obj


def get_engine(ctx: typer.Context) -> ContentEngine:
    return get_state(ctx).engine


def fail(message: str) -> NoReturn:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn engine errors into a red message and exit code 1."""
    try:
        yield
    except CertpathError as e:
        fail(str(e))


def require_admin(ctx: typer.Context, user: str, password: str) -> None:
    if not verify_admin(user, password, get_state(ctx).settings):
        fail("Admin credentials rejected")


ADMIN_USER = typer.Option("admin", "--user", help="Admin user name")
ADMIN_PASSWORD = typer.Option(..., "--password", prompt=True, hide_input=True, help="Admin shared secret")
