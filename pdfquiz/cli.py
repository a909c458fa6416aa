"""
CLI Interface
=============
Command-line interface for the PDF quiz pipeline.

Usage:
    python -m pdfquiz upload <pdf_path> [options]
    python -m pdfquiz quiz <pdf_path> [options]
    python -m pdfquiz project <lesson_plan.json>
    python -m pdfquiz sections <text_file>
    python -m pdfquiz info <pdf_path>
    python -m pdfquiz serve [options]
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .engine import EngineConfig, QuizEngine
from .errors import PipelineError, SchemaViolation
from .lesson_validator import format_errors
from .normalizer import DEFAULT_MAX_SECTION_CHARS, normalize_text
from .quiz_service import build_quiz_result
from .text_quality import compact_length, needs_ocr
from .widget_projector import unresolved_choice_questions

console = Console()

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"])


def _build_engine(log_level: str, ocr: bool = True, model: Optional[str] = None) -> QuizEngine:
    config = replace(
        EngineConfig.from_env(),
        log_level=log_level,
        ocr_enabled=ocr,
    )
    if model:
        config.quiz_model = model
    return QuizEngine(config)


def _print_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


@click.group()
@click.version_option(version=__version__, prog_name="pdfquiz")
def cli():
    """PDF Quiz Pipeline: PDF text extraction and quiz widget generation."""
    pass


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--no-ocr", is_flag=True, default=False, help="Disable the OCR fallback")
@click.option("--log-level", default="INFO", type=LOG_LEVELS, help="Logging level")
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def upload(pdf_path: str, no_ocr: bool, log_level: str, json_output: bool):
    """Extract and normalize the text of a PDF file."""
    if json_output:
        log_level = "ERROR"

    engine = _build_engine(log_level, ocr=not no_ocr)
    data = Path(pdf_path).read_bytes()

    try:
        processed = engine.process_upload(data, filename=os.path.basename(pdf_path))
    except PipelineError as e:
        console.print(f"[red]Error:[/] {e.user_message}")
        sys.exit(1)

    if json_output:
        _print_json(processed.to_json_dict())
        return

    _display_upload(os.path.basename(pdf_path), processed)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--model", default=None, help="Override the quiz model")
@click.option("--no-ocr", is_flag=True, default=False, help="Disable the OCR fallback")
@click.option("--log-level", default="INFO", type=LOG_LEVELS, help="Logging level")
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def quiz(pdf_path: str, model: str, no_ocr: bool, log_level: str, json_output: bool):
    """Generate a quiz widget from a PDF file."""
    if json_output:
        log_level = "ERROR"

    engine = _build_engine(log_level, ocr=not no_ocr, model=model)

    try:
        result = engine.ingest(
            Path(pdf_path).read_bytes(), filename=os.path.basename(pdf_path)
        )
    except PipelineError as e:
        console.print(f"[red]Error:[/] {e.user_message}")
        sys.exit(1)

    if result.quiz is None:
        reason = result.quiz_error or result.upload.message or "No usable text."
        console.print(f"[red]Quiz not generated:[/] {reason}")
        sys.exit(1)

    if json_output:
        _print_json(result.quiz.to_json_dict())
        return

    _display_quiz(result.quiz)


@cli.command()
@click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
def project(json_path: str):
    """Validate a lesson plan JSON file and print its widget state."""
    raw = Path(json_path).read_text(encoding="utf-8")

    try:
        result = build_quiz_result(raw)
    except SchemaViolation as e:
        console.print(f"[red]Invalid lesson plan:[/] {e}")
        for line in format_errors(e.errors):
            console.print(f"  • {line}")
        sys.exit(1)
    except PipelineError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    unresolved = unresolved_choice_questions(result.lesson_plan)
    if unresolved:
        click.echo(
            f"Warning: correct choice unresolved for questions {unresolved}; "
            f"defaulted to choice 1",
            err=True,
        )

    _print_json(result.widget.model_dump(mode="json"))


@cli.command()
@click.argument("text_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--max-chars",
    default=DEFAULT_MAX_SECTION_CHARS,
    type=int,
    help="Maximum characters per section",
)
@click.option("--json-output", is_flag=True, default=False, help="Output JSON")
def sections(text_path: str, max_chars: int, json_output: bool):
    """Split a plain text file into normalized sections."""
    text = Path(text_path).read_text(encoding="utf-8")
    result = normalize_text(text, max_section_chars=max_chars)

    if json_output:
        _print_json([s.model_dump(mode="json", by_alias=True) for s in result])
        return

    _display_sections(result)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP microservice."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]PDF Quiz Microservice[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
def info(pdf_path: str):
    """Display PDF file information and whether OCR would be needed."""
    from .extractor import PdfTextExtractor

    parsed = PdfTextExtractor().extract(Path(pdf_path).read_bytes())
    metadata = parsed.metadata

    console.print()
    table = Table(title="PDF Information", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")

    table.add_row("File", os.path.basename(pdf_path))
    table.add_row("Pages", str(metadata.page_count))
    table.add_row(
        "File Size",
        f"{os.path.getsize(pdf_path) / 1024 / 1024:.2f} MB",
    )
    for key in ["title", "author", "subject", "creator", "producer"]:
        val = getattr(metadata, key)
        if val:
            table.add_row(key.title(), val)

    length = compact_length(parsed.text)
    table.add_row("Embedded Characters", str(length))
    table.add_row(
        "Needs OCR",
        "[yellow]yes[/]" if needs_ocr(parsed.text) else "[green]no[/]",
    )

    console.print(table)
    console.print()


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_upload(name: str, processed):
    """Display an upload result as rich tables."""
    console.print()
    metadata = processed.metadata

    table = Table(title=f"Upload: {name}", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Pages", str(metadata.page_count))
    table.add_row("Title", metadata.title or "(not set)")
    table.add_row("Author", metadata.author or "(not set)")
    table.add_row(
        "Needs OCR",
        "[red]yes[/]" if processed.needs_ocr else "[green]no[/]",
    )
    if processed.ocr:
        table.add_row(
            "OCR",
            f"{processed.ocr.provider} "
            f"({'ok' if processed.ocr.success else 'failed'}, "
            f"{processed.ocr.page_count} pages)",
        )
    if processed.message:
        table.add_row("Message", processed.message)
    console.print(table)
    console.print()

    _display_sections(processed.sections)


def _display_sections(sections):
    """Display normalized sections."""
    table = Table(title="Sections", border_style="green")
    table.add_column("#", justify="right")
    table.add_column("Heading", style="bold")
    table.add_column("Pages", justify="center")
    table.add_column("Words", justify="right")
    table.add_column("Preview")

    for section in sections:
        pages = (
            str(section.page_start)
            if section.page_start == section.page_end
            else f"{section.page_start}-{section.page_end}"
        )
        preview = section.body.replace("\n", " ")
        table.add_row(
            str(section.order),
            section.heading or "[dim](untitled)[/]",
            pages,
            str(section.word_count),
            preview[:60] + ("…" if len(preview) > 60 else ""),
        )

    console.print(table)
    console.print(f"[dim]{len(sections)} sections[/]")
    console.print()


def _display_quiz(result):
    """Display generated quiz questions."""
    lesson = result.widget.data.lesson
    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]{lesson.title}[/]\n[dim]{lesson.description}[/]",
            border_style="cyan",
        )
    )

    table = Table(title="Questions", border_style="green")
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Correct", style="bold")

    for question in lesson.questions:
        correct = question.choices[question.correct_choice_id - 1]
        table.add_row(
            str(question.id),
            question.question,
            f"{correct.id}. {correct.label}",
        )

    console.print(table)
    console.print()


# ─── Entry point (for python -m pdfquiz.cli) ──────────────────────────────────


if __name__ == "__main__":
    cli()
