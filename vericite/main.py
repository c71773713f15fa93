"""CLI entry point."""

from __future__ import annotations

# Set certifi CA bundle for SSL before any HTTP libs load
import os

import certifi

os.environ.setdefault("SSL_CERT_FILE", certifi.where())
os.environ.setdefault("REQUESTS_CA_BUNDLE", certifi.where())

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Sequence

from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.table import Table

from vericite.citations.reformatter import CitationReformatter
from vericite.config.loader import load_settings, validate_secret_env
from vericite.exceptions import NoCitationsFoundError, VeriCiteError
from vericite.llm.gemini_client import GeminiClient
from vericite.models import (
    AnalysisReport,
    CandidateCitation,
    CitationStyle,
    SettingsConfig,
    VerificationStatus,
)
from vericite.pipeline import VerificationPipeline
from vericite.utils.logging_config import LogLevel, setup_logging
from vericite.utils.retry_strategies import RetryingInvoker

_STATUS_STYLE = {
    VerificationStatus.VERIFIED: "green",
    VerificationStatus.HALLUCINATED: "red",
    VerificationStatus.AMBIGUOUS: "yellow",
}

_STYLE_CHOICES = {style.name: style for style in CitationStyle}


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _print_report(console: Console, report: AnalysisReport) -> None:
    """Print per-citation verdicts and the summary as Rich tables."""
    table = Table(title=f"Citation Report {report.id}")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Status", no_wrap=True)
    table.add_column("Confidence", justify="right")
    table.add_column("Source", style="cyan")
    table.add_column("Notes", style="dim")
    for index, citation in enumerate(report.citations, 1):
        color = _STATUS_STYLE.get(citation.status, "white")
        match = citation.database_match
        table.add_row(
            str(index),
            citation.extracted_title or citation.original_text[:80],
            f"[{color}]{citation.status.value}[/]",
            str(citation.confidence_score),
            match.source.value if match else "-",
            citation.analysis_notes,
        )
    console.print(table)

    summary = Table(title="Summary")
    summary.add_column("Field", style="cyan", no_wrap=True)
    summary.add_column("Value", style="white")
    summary.add_row("Total citations", str(report.total_citations))
    summary.add_row("Verified", str(report.verified_count))
    summary.add_row("Hallucinated", str(report.hallucinated_count))
    summary.add_row("Ambiguous", str(report.ambiguous_count))
    summary.add_row("Trust score", f"{report.overall_trust_score}%")
    console.print(summary)


async def _reformat_verified(
    console: Console, report: AnalysisReport, style: CitationStyle, settings: SettingsConfig
) -> None:
    client = GeminiClient(timeout_seconds=settings.http.timeout_seconds)
    reformatter = CitationReformatter(
        client,
        RetryingInvoker(jitter_ms=settings.retry.jitter_ms),
        model=settings.models.reformat,
        retry_policy=settings.retry.reformat,
    )
    console.print(f"\n[bold]{style.value} references[/]")
    for citation in report.citations:
        if citation.status != VerificationStatus.VERIFIED:
            continue
        try:
            formatted = await reformatter.reformat(citation, style)
        except VeriCiteError as e:
            console.print(f"[yellow]Could not reformat '{citation.extracted_title}':[/] {e}")
            continue
        console.print(f"- {formatted}")


def _load_candidates(path: str) -> list[CandidateCitation]:
    raw = _read_input(path)
    return TypeAdapter(list[CandidateCitation]).validate_json(raw)


def _write_report(report: AnalysisReport, path: str) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(report.model_dump_json(indent=2), encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vericite",
        description="Verify academic citations against Crossref and web grounding.",
    )
    sub = parser.add_subparsers(dest="command")

    def add_common(cmd: argparse.ArgumentParser) -> None:
        cmd.add_argument("--settings", default="config/settings.yaml")
        cmd.add_argument("--json-out", help="Write the full report as JSON to this path")
        cmd.add_argument("--style", choices=sorted(_STYLE_CHOICES), help="Reformat verified citations into this style")
        cmd.add_argument("--verbose", "-v", action="store_true", help="Per-group progress and retry logging")
        cmd.add_argument("--debug", "-d", action="store_true", help="Verbose plus per-source signal logging")

    analyze = sub.add_parser("analyze", help="Extract citations from a text file and verify them")
    analyze.add_argument("input", help="Text file to analyze, or '-' for stdin")
    add_common(analyze)

    verify = sub.add_parser("verify", help="Verify a JSON list of already-extracted citations")
    verify.add_argument("input", help="JSON file of citation objects, or '-' for stdin")
    add_common(verify)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    console = Console()
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(
        level=LogLevel.NORMAL if args.verbose or args.debug else LogLevel.MINIMAL,
        verbose=args.verbose,
        debug=args.debug,
    )

    try:
        settings = load_settings(args.settings)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    missing = validate_secret_env()
    if missing:
        console.print(f"[red]Error:[/] Missing environment variables: {', '.join(missing)}")
        return 1

    try:
        pipeline = VerificationPipeline.from_settings(settings)
        if args.command == "analyze":
            report = asyncio.run(pipeline.analyze_text(_read_input(args.input)))
        else:
            report = asyncio.run(pipeline.run(_load_candidates(args.input)))
    except NoCitationsFoundError as e:
        console.print(f"[yellow]{e}[/]")
        return 1
    except (OSError, ValidationError, VeriCiteError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    _print_report(console, report)
    if args.json_out:
        _write_report(report, args.json_out)
        console.print(f"[dim]Report written to {args.json_out}[/]")
    if args.style:
        asyncio.run(_reformat_verified(console, report, _STYLE_CHOICES[args.style], settings))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
