"""CLI entrypoint for the MTA:SA docs cache."""

from __future__ import annotations

import json
import os
from typing import Optional

import requests
import typer
import uvicorn

app = typer.Typer(name="mtasa-docs", help="MTA:SA documentation cache command-line interface")

DEFAULT_HOST = "http://127.0.0.1:5180"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("MTADOCS_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=120, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _print_items(payload: dict) -> None:
    typer.echo(f"Found {payload['count']} functions:")
    for idx, item in enumerate(payload["results"], start=1):
        typer.echo(f"{idx}. {item['name']} [{item['side']}] - {item['category']}")


@app.command()
def search(
    q: str = typer.Argument(..., help="Function name or partial name"),
    side: Optional[str] = typer.Option(None, "--side", help="client, server or shared"),
    limit: int = typer.Option(30, "--limit", help="Maximum number of results"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Search functions and events by name."""
    params: dict[str, object] = {"q": q, "limit": limit}
    if side:
        params["side"] = side
    resp = _request("GET", "/search", host=host, params=params)
    _print_items(resp.json())


@app.command()
def related(
    task: str = typer.Argument(..., help="What you want to build, e.g. 'spawn vehicle'"),
    limit: int = typer.Option(10, "--limit", help="Maximum number of suggestions"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Suggest functions for a programming task."""
    resp = _request("POST", "/related", host=host, json={"query": task, "limit": limit})
    _print_items(resp.json())


@app.command()
def docs(
    name: str = typer.Argument(..., help="Exact function name (case-sensitive)"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Always refetch from the wiki"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON document"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Print documentation for one function."""
    params = {"use_cache": str(not no_cache).lower(), "format": "json" if as_json else "markdown"}
    resp = _request("GET", f"/docs/{name}", host=host, params=params)
    if as_json:
        typer.echo(json.dumps(resp.json(), indent=2))
    else:
        typer.echo(resp.text)


@app.command()
def examples(
    name: str = typer.Argument(..., help="Exact function name (case-sensitive)"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Print only the code examples for one function."""
    resp = _request("GET", f"/docs/{name}/examples", host=host, params={"format": "markdown"})
    typer.echo(resp.text)


@app.command("clear-cache")
def clear_cache(
    target: str = typer.Argument("all", help="Function name, or 'all'"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Clear cached documentation."""
    resp = _request("DELETE", f"/cache/{target}", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def stats(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show cache statistics."""
    payload = _request("GET", "/cache/stats", host=host).json()
    typer.echo(f"Cached functions: {payload['count']}")
    typer.echo(f"Database size: {payload['approx_size_bytes'] / 1024 / 1024:.2f} MB")
    typer.echo(f"Database path: {payload['db_path']}")
    typer.echo(f"Cache duration: {payload['max_age_days']:g} days")


@app.command()
def reload(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Reload the function catalog from the wiki."""
    resp = _request("POST", "/catalog/reload", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def serve(
    bind: str = typer.Option("127.0.0.1", "--bind", help="Interface to listen on"),
    port: int = typer.Option(5180, "--port", help="Port to listen on"),
) -> None:
    """Run the HTTP service."""
    uvicorn.run("mtasa_docs.app:app", host=bind, port=port, log_config=None)


if __name__ == "__main__":
    app()
