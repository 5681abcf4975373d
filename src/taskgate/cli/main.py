"""Taskgate CLI — register, log in, and manage your tasks from a terminal.

Usage:
    taskgate register alice alice@x.com          # Prompts for a password
    taskgate login alice@x.com                   # Prints a token
    export TASKGATE_TOKEN=<token>
    taskgate whoami                              # Current user
    taskgate serve                               # Run the API server
    taskgate tasks --open                        # List tasks
    taskgate add "write report" -p high          # Create a task
    taskgate show 42                             # Task detail
    taskgate done 42                             # Mark completed
    taskgate rm 42                               # Delete
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("TASKGATE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Taskgate backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    """Resolve the bearer token from --token or TASKGATE_TOKEN."""
    tok = token or os.environ.get("TASKGATE_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set TASKGATE_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _check(r: httpx.Response) -> dict | list:
    """Return the JSON body, or print the API's error detail and exit 1."""
    if r.is_success:
        return r.json()
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    if isinstance(detail, list):
        detail = "; ".join(d.get("msg", str(d)) for d in detail)
    click.secho(f"Error ({r.status_code}): {detail}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k) if row.get(k) is not None else "-")[:w].ljust(w)
                         for _, k, w in columns)
        click.echo(line)


def _priority_color(priority: str) -> str:
    return {"low": "white", "medium": "yellow", "high": "red"}.get(priority, "white")


token_option = click.option(
    "--token", envvar="TASKGATE_TOKEN", help="Bearer token (or set TASKGATE_TOKEN)"
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="taskgate")
def main():
    """Taskgate — your tasks, behind a login."""


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: TASKGATE_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: TASKGATE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the Taskgate API server."""
    import uvicorn

    from taskgate.config import settings

    uvicorn.run(
        "taskgate.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.argument("email")
@click.password_option()
def register(username: str, email: str, password: str):
    """Create an account and print its token."""
    _run(_auth_impl("/api/v1/auth/register", {
        "username": username, "email": email, "password": password,
    }))


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and print a token."""
    _run(_auth_impl("/api/v1/auth/login", {"email": email, "password": password}))


async def _auth_impl(path: str, body: dict):
    async with _client() as c:
        data = _check(await c.post(path, json=body))
    click.secho(f"Signed in as {data['user']['username']} ({data['user']['email']})",
                fg="green", err=True)
    click.echo(data["access_token"])


@main.command()
@token_option
def whoami(token: Optional[str]):
    """Show the user the token belongs to."""
    _run(_whoami_impl(_require_token(token)))


async def _whoami_impl(token: str):
    async with _client(token) as c:
        user = _check(await c.get("/api/v1/auth/me"))
    click.echo(f"{user['username']} <{user['email']}>  id={user['id']}")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@main.command()
@token_option
@click.option("--open", "only_open", is_flag=True, help="Only tasks not completed")
@click.option("--done", "only_done", is_flag=True, help="Only completed tasks")
@click.option("--priority", "-p", type=click.Choice(["low", "medium", "high"]))
@click.option("--sort", "-s", default="-created_at", help='e.g. "title", "-due_date"')
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def tasks(token: Optional[str], only_open: bool, only_done: bool,
          priority: Optional[str], sort: str, as_json: bool):
    """List your tasks."""
    if only_open and only_done:
        raise click.UsageError("--open and --done are mutually exclusive")
    params: dict = {"sort": sort}
    if only_open or only_done:
        params["completed"] = "true" if only_done else "false"
    if priority:
        params["priority"] = priority
    _run(_tasks_impl(_require_token(token), params, as_json))


async def _tasks_impl(token: str, params: dict, as_json: bool):
    async with _client(token) as c:
        rows = _check(await c.get("/api/v1/tasks", params=params))

    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No tasks found.")
        return

    for row in rows:
        row["done"] = "x" if row["completed"] else ""
    click.secho(f"Tasks ({len(rows)}):", bold=True)
    click.echo()
    _print_table(rows, [
        ("ID", "id", 6),
        ("Done", "done", 4),
        ("Priority", "priority", 8),
        ("Due", "due_date", 20),
        ("Title", "title", 60),
    ])


@main.command()
@token_option
@click.argument("title")
@click.option("--description", "-d", default="")
@click.option("--priority", "-p", type=click.Choice(["low", "medium", "high"]),
              default="medium")
@click.option("--due", help="Due date (ISO 8601)")
def add(token: Optional[str], title: str, description: str, priority: str,
        due: Optional[str]):
    """Create a task."""
    body = {"title": title, "description": description, "priority": priority}
    if due:
        body["due_date"] = due
    _run(_add_impl(_require_token(token), body))


async def _add_impl(token: str, body: dict):
    async with _client(token) as c:
        task = _check(await c.post("/api/v1/tasks", json=body))
    click.secho(f"Task #{task['id']} created", fg="green")


@main.command()
@token_option
@click.argument("task_id", type=int)
def show(token: Optional[str], task_id: int):
    """Show one task."""
    _run(_show_impl(_require_token(token), task_id))


async def _show_impl(token: str, task_id: int):
    async with _client(token) as c:
        task = _check(await c.get(f"/api/v1/tasks/{task_id}"))
    state = "done" if task["completed"] else "open"
    click.secho(f"#{task['id']} {task['title']}", bold=True)
    click.echo(f"  Priority: {click.style(task['priority'], fg=_priority_color(task['priority']))}")
    click.echo(f"  Status:   {state}")
    click.echo(f"  Due:      {task['due_date'] or '-'}")
    if task["description"]:
        click.echo()
        click.echo(task["description"])


@main.command()
@token_option
@click.argument("task_id", type=int)
@click.option("--undo", is_flag=True, help="Mark as not completed")
def done(token: Optional[str], task_id: int, undo: bool):
    """Mark a task completed."""
    _run(_done_impl(_require_token(token), task_id, not undo))


async def _done_impl(token: str, task_id: int, completed: bool):
    async with _client(token) as c:
        task = _check(await c.patch(f"/api/v1/tasks/{task_id}",
                                    json={"completed": completed}))
    click.echo(f"Task #{task['id']} {'completed' if task['completed'] else 'reopened'}")


@main.command()
@token_option
@click.argument("task_id", type=int)
def rm(token: Optional[str], task_id: int):
    """Delete a task."""
    _run(_rm_impl(_require_token(token), task_id))


async def _rm_impl(token: str, task_id: int):
    async with _client(token) as c:
        _check(await c.delete(f"/api/v1/tasks/{task_id}"))
    click.echo(f"Task #{task_id} deleted")


if __name__ == "__main__":
    main()
