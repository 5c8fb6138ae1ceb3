"""FactChecker CLI — entry-point for the link checking pipeline.

Usage:
    python cli/main.py --help

Commands map onto the pipeline stages:
    extract   → links with sentence, context and numeric features
    classify  → extract + citation/regular labelling
    check     → full run: fetch and verify every link
    serve     → the HTTP API (fetch proxy, LLM proxy, pipeline endpoints)
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from factcheck.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import contextlib
import json
from typing import Optional

import typer

from cli.rendering import TerminalRenderer, summarise
from cli.samples import SAMPLES
from factcheck.config import Settings
from factcheck.errors import ConfigurationError, RunCancelledError
from factcheck.extractor import extract_unique
from factcheck.runner import FactCheckPipeline
from factcheck.scraper.extractor import html_to_markdown

app = typer.Typer(
    name="factcheck",
    help="Extract, classify and verify the links of a Markdown document.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------

def read_document(
    file: Optional[Path],
    text: Optional[str],
    sample: Optional[int],
    html: bool,
) -> str:
    """Resolve the document from --sample, --text, --file or stdin (first wins)."""
    if sample is not None:
        if sample not in SAMPLES:
            typer.echo(f"[input] Unknown sample {sample}. Use: {', '.join(map(str, SAMPLES))}")
            raise typer.Exit(1)
        document = SAMPLES[sample]
    elif text is not None:
        document = text
    elif file is not None:
        document = file.read_text(encoding="utf-8")
    else:
        document = typer.get_text_stream("stdin").read()

    if not document.strip():
        typer.echo("[input] No input. Pass --file, --text, --sample or pipe a document on stdin.")
        raise typer.Exit(1)

    return html_to_markdown(document) if html else document


_FILE = typer.Option(None, "--file", "-f", exists=True, dir_okay=False, help="Read the document from a file.")
_TEXT = typer.Option(None, "--text", "-t", help="Document text given inline.")
_SAMPLE = typer.Option(None, "--sample", help="Use a built-in sample document (1 or 2).")
_HTML = typer.Option(False, "--html", help="Input is HTML; convert it to Markdown first.")
_JSON = typer.Option(False, "--json", help="Print machine-readable JSON.")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("extract")
def extract_cmd(
    file: Optional[Path] = _FILE,
    text: Optional[str] = _TEXT,
    sample: Optional[int] = _SAMPLE,
    html: bool = _HTML,
    as_json: bool = _JSON,
) -> None:
    """Print every unique link with its sentence, context and numeric features."""
    links = extract_unique(read_document(file, text, sample, html))

    if as_json:
        typer.echo(json.dumps([link.to_dict() for link in links], indent=2, ensure_ascii=False))
        return
    if not links:
        typer.echo("[extract] No links found.")
        return

    for idx, link in enumerate(links, start=1):
        f = link.features
        typer.echo(f"{idx:>3}. {link.text!r} → {link.url}")
        typer.echo(f"     Sentence : {link.sentence}")
        typer.echo(f"     Context  : {link.context}")
        typer.echo(
            f"     Numbers  : anchor={f.anchor_numbers or '-'}  "
            f"sentence={f.sentence_numbers or '-'}  unlinked={f.unlinked_numbers or '-'}"
        )


@app.command("classify")
def classify_cmd(
    file: Optional[Path] = _FILE,
    text: Optional[str] = _TEXT,
    sample: Optional[int] = _SAMPLE,
    html: bool = _HTML,
    heuristic_only: bool = typer.Option(
        False, "--heuristic-only", help="Skip the LLM and label links with the local rules."
    ),
    as_json: bool = _JSON,
) -> None:
    """Extract links and label each one as a citation or a regular link."""
    document = read_document(file, text, sample, html)
    pipeline = FactCheckPipeline(Settings())

    try:
        with _logs_to_stderr(as_json):
            links = pipeline.classify(pipeline.extract(document), heuristic_only=heuristic_only)
    except ConfigurationError as exc:
        typer.echo(f"[classify] {exc}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps([link.to_dict() for link in links], indent=2, ensure_ascii=False))
        return
    for idx, link in enumerate(links, start=1):
        kind = "citation" if link.is_citation else "link"
        typer.echo(f"{idx:>3}. [{kind:<8}] {link.text!r} → {link.url}")


@app.command("check")
def check_cmd(
    file: Optional[Path] = _FILE,
    text: Optional[str] = _TEXT,
    sample: Optional[int] = _SAMPLE,
    html: bool = _HTML,
    as_json: bool = _JSON,
) -> None:
    """Run the full pipeline: classify, fetch and verify every link.

    Pages are fetched through FETCH_PROXY_URL, so `factcheck serve` must be
    running (or the variable must point at another deployment).
    """
    document = read_document(file, text, sample, html)
    pipeline = FactCheckPipeline(Settings())
    renderer = None if as_json else TerminalRenderer()

    try:
        with _logs_to_stderr(as_json):
            results = pipeline.run(document, renderer=renderer)
    except ConfigurationError as exc:
        typer.echo(f"[check] {exc}")
        raise typer.Exit(1)
    except RunCancelledError:
        typer.echo("[check] Cancelled.")
        raise typer.Exit(130)

    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
        return
    typer.echo("\n--- Fact check complete ---")
    typer.echo(f"  {summarise(results)}")


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
) -> None:
    """Serve the HTTP API (fetch proxy, LLM proxy and pipeline endpoints)."""
    import uvicorn

    from factcheck.api.app import create_app

    typer.echo(f"[serve] Listening on http://{host}:{port}")
    uvicorn.run(create_app(Settings()), host=host, port=port)


def _logs_to_stderr(enabled: bool):
    """Keep stage log lines off stdout while JSON is being produced."""
    return contextlib.redirect_stdout(sys.stderr) if enabled else contextlib.nullcontext()


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
