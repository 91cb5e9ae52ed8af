"""CLI entrypoint for Writebox."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

app = typer.Typer(name="writebox", help="Writebox command-line interface")
docs_app = typer.Typer(name="docs", help="Saved documents")
files_app = typer.Typer(name="files", help="Files stored on the server")
transcripts_app = typer.Typer(name="transcripts", help="Saved transcripts")
app.add_typer(docs_app, name="docs")
app.add_typer(files_app, name="files")
app.add_typer(transcripts_app, name="transcripts")

DEFAULT_HOST = "http://127.0.0.1:3000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("WRITEBOX_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def serve(
    bind: str = typer.Option("127.0.0.1", "--bind", help="Interface to listen on"),
    port: int = typer.Option(3000, "--port", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Writebox server."""
    import uvicorn

    uvicorn.run("writebox.app:app", host=bind, port=port, reload=reload)


@docs_app.command("list")
def list_documents(
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Filter by title or text"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List saved documents, newest first."""
    params = {"q": query} if query else None
    resp = _request("GET", "/api/workspace/documents", host=host, params=params)
    typer.echo(json.dumps(resp.json(), indent=2))


@files_app.command("list")
def list_files(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List files uploaded to the server."""
    resp = _request("GET", "/api/files", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@files_app.command("upload")
def upload_files(
    paths: list[Path] = typer.Argument(..., help="Files to upload"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Upload one or more files."""
    handles = []
    try:
        for path in paths:
            resolved = path.expanduser()
            if not resolved.is_file():
                typer.echo(f"Not a file: {resolved}", err=True)
                raise typer.Exit(code=1)
            handles.append(("files", (resolved.name, resolved.open("rb"))))
        resp = _request("POST", "/api/files/upload", host=host, files=handles)
    finally:
        for _, (_, fh) in handles:
            fh.close()
    typer.echo(json.dumps(resp.json(), indent=2))


@files_app.command("remove")
def remove_file(
    file_id: int = typer.Argument(..., help="File identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete an uploaded file."""
    _request("DELETE", f"/api/files/{file_id}", host=host)
    typer.echo(json.dumps({"status": "ok"}))


@transcripts_app.command("list")
def list_transcripts(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List saved transcripts."""
    resp = _request("GET", "/api/workspace/transcripts", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@transcripts_app.command("export")
def export_transcript(
    transcript_id: int = typer.Argument(..., help="Transcript identifier"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Load a saved transcript and export it as plain text."""
    _request("POST", f"/api/workspace/transcripts/{transcript_id}/load", host=host)
    resp = _request("GET", "/api/workspace/transcription/export", host=host)
    if output is None:
        typer.echo(resp.text)
        return
    output.expanduser().write_text(resp.text, encoding="utf-8")
    typer.echo(json.dumps({"status": "ok", "path": str(output)}))


if __name__ == "__main__":
    app()
