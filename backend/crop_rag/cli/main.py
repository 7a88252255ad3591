"""CLI entrypoint for Crop RAG."""

from __future__ import annotations

import json
import mimetypes
import os
from pathlib import Path
from typing import List, Optional

import requests
import typer

app = typer.Typer(name="croprag", help="Crop RAG command-line interface")
store_app = typer.Typer(name="store", help="Inspect or reset the vector store")
app.add_typer(store_app, name="store")

DEFAULT_HOST = "http://127.0.0.1:5000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("CROPRAG_HOST")
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


@app.command()
def ingest(
    paths: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="PDF, DOCX or text files"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Upload documents to the ingest pipeline."""
    files = []
    for path in paths:
        resolved = path.expanduser()
        mime = mimetypes.guess_type(resolved.name)[0] or "application/octet-stream"
        files.append(("files", (resolved.name, resolved.read_bytes(), mime)))
    resp = _request("POST", "/ingest", host=host, files=files)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def ask(
    query: str = typer.Argument(..., help="Question to answer"),
    top_k: int = typer.Option(5, "--top-k", help="Number of passages to retrieve"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask a question against the ingested documents."""
    resp = _request("POST", "/qa", host=host, json={"query": query, "topK": top_k})
    payload = resp.json()
    typer.echo(payload["answer"])
    if payload.get("sources"):
        typer.echo("")
        for source in payload["sources"]:
            typer.echo(f"- {source['id']} ({source['score']:.3f})")


@store_app.command("show")
def show_store(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Print record count, dimension and per-source chunk counts."""
    resp = _request("GET", "/store", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@store_app.command("clear")
def clear_store(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete every stored vector."""
    if not yes:
        typer.confirm("Remove every stored vector?", abort=True)
    _request("DELETE", "/store", host=host)
    typer.echo(json.dumps({"status": "ok"}))


if __name__ == "__main__":
    app()
