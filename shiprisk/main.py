"""CLI entrypoint: manage the supplier catalogue and run risk assessments."""

from __future__ import annotations

import argparse
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shiprisk.analyzer import RiskAnalyzer
from shiprisk.config import DEFAULT_SUPPLIERS
from shiprisk.db import Repository
from shiprisk.errors import InvalidInput, ShipRiskError
from shiprisk.log import setup_logging
from shiprisk.models import RiskLevel, ScoringBatch, Supplier

console = Console()

RISK_STYLES = {
    RiskLevel.CRITICAL: "bold red",
    RiskLevel.HIGH: "red",
    RiskLevel.MODERATE: "yellow",
    RiskLevel.LOW: "green",
    RiskLevel.NO_RISK: "bold green",
}


def _open_repo(args: argparse.Namespace) -> Repository:
    repo = Repository(args.db)
    if not args.no_seed and not repo.list_suppliers():
        repo.seed_suppliers([Supplier(**s) for s in DEFAULT_SUPPLIERS])
    return repo


def _risk_cell(level: RiskLevel) -> str:
    style = RISK_STYLES.get(level, "white")
    return f"[{style}]{level.value}[/{style}]"


def print_batch(batch: ScoringBatch, title: str) -> None:
    table = Table(title=title, show_lines=True)
    table.add_column("Candidate", style="cyan")
    table.add_column("Risk %", justify="right")
    table.add_column("Level", justify="center")
    table.add_column("Cost", justify="right")
    table.add_column("Rating", justify="right")
    table.add_column("Reviews", justify="right")
    table.add_column("Factors", justify="right")

    for r in batch.results:
        c = r.contributions
        marker = " ★" if r is batch.best_candidate else ""
        table.add_row(
            r.label + marker,
            f"{r.risk_percentage:.2f}",
            _risk_cell(r.risk_level),
            f"{c['cost']:.2f}" if "cost" in c else "-",
            f"{c['rating']:.2f}" if "rating" in c else "-",
            f"{c['reviews']:.2f}" if "reviews" in c else "-",
            " × ".join(f"{f:.2f}" for f in r.factors) or "-",
        )

    console.print(table)
    best = batch.best_candidate
    console.print(
        f"[bold]Best candidate:[/bold] {best.label} "
        f"({best.risk_percentage:.2f}%, {_risk_cell(best.risk_level)})\n"
    )


def cmd_suppliers(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    table = Table(title="Suppliers")
    table.add_column("Name", style="cyan")
    table.add_column("Cost", justify="right")
    table.add_column("Rating", justify="right")
    table.add_column("Reviews", justify="right")
    table.add_column("Location")
    for s in repo.list_suppliers():
        table.add_row(s.name, f"₹{s.cost:,.0f}", f"{s.rating:g}/10", str(s.reviews), s.location or "-")
    console.print(table)
    repo.close()


def cmd_add_supplier(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    supplier = Supplier(
        name=args.name, cost=args.cost, rating=args.rating,
        reviews=args.reviews, location=args.location or "",
    )
    repo.upsert_supplier(supplier)
    console.print(f"[green]Saved supplier {supplier.name}[/green]")
    repo.close()


def cmd_remove_supplier(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    if not repo.delete_supplier(args.name):
        raise InvalidInput(f"Supplier not found: {args.name}")
    console.print(f"[green]Removed supplier {args.name}[/green]")
    repo.close()


def cmd_analyze(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    batch = RiskAnalyzer(repo).analyze_suppliers()
    print_batch(batch, "Supplier Risk Analysis")
    repo.close()


def cmd_supplier(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    result = RiskAnalyzer(repo).analyze_supplier(args.name)
    style = RISK_STYLES.get(result.risk_level, "white")
    console.print(Panel(
        result.rationale,
        title=f"[{style}]{result.label}[/{style}] - Risk: {result.risk_percentage:.2f}%",
        border_style=style.split()[-1],
    ))
    repo.close()


def cmd_adjusted(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    summary = RiskAnalyzer(repo).adjusted_supplier_analysis(args.place, args.news_query)
    report = summary["weather"]
    console.print(
        f"\n[bold]Weather at {report.place}:[/bold] {report.condition} ({report.description}), "
        f"{report.temperature_c:.1f}°C, wind {report.wind_speed_ms:.1f} m/s"
    )
    console.print(
        f"  weather factor {summary['weather_risk_factor']:.2f}, "
        f"news sentiment {summary['sentiment']:+.1f} → factor {summary['sentiment_risk_factor']:.2f}\n"
    )
    print_batch(summary["batch"], "Adjusted Supplier Risk Analysis")
    repo.close()


def cmd_land(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    summary = RiskAnalyzer(repo).assess_land_route(args.origin, args.destination)
    console.print(f"\n[bold]Route factor:[/bold] {summary['route_risk_factor']:.2f}\n")
    print_batch(summary["batch"], f"Land Route: {args.origin} → {args.destination}")
    repo.close()


def cmd_sea(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    a = RiskAnalyzer(repo).assess_sea_route(args.place)
    body = "\n".join(f"• {point}" for point in a.assessment)
    body += f"\n\n[bold]{a.recommendation}[/bold]"
    border = "white"
    if a.result:
        body += f"\nEngine score: {a.result.risk_percentage:.2f}% ({_risk_cell(a.result.risk_level)})"
        border = RISK_STYLES[a.result.risk_level].split()[-1]
    console.print(Panel(
        body,
        title=f"{a.place} - {a.sentiment} ({a.risk_score:+.1f})",
        border_style=border,
    ))
    repo.close()


def cmd_insurance(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    recs = RiskAnalyzer(repo).insurance_recommendations(args.location)
    for i, rec in enumerate(recs, 1):
        lines = [rec.description]
        if rec.risks_covered:
            lines.append(f"[dim]Covers:[/dim] {', '.join(rec.risks_covered)}")
        if rec.facilities:
            lines.append(f"[dim]Facilities:[/dim] {', '.join(rec.facilities)}")
        if rec.uniqueness:
            lines.append(f"[dim]Unique:[/dim] {rec.uniqueness}")
        if rec.why_asset:
            lines.append(f"[dim]Why:[/dim] {rec.why_asset}")
        console.print(Panel("\n".join(lines), title=f"{i}. {rec.type}"))
    repo.close()


def cmd_history(args: argparse.Namespace) -> None:
    repo = _open_repo(args)
    table = Table(title="Assessment History")
    table.add_column("#", justify="right")
    table.add_column("When")
    table.add_column("Kind")
    table.add_column("Subject", style="cyan")
    table.add_column("Risk %", justify="right")
    table.add_column("Level", justify="center")
    for a in repo.list_assessments(limit=args.limit, kind=args.kind):
        table.add_row(
            str(a.id),
            a.created_at.strftime("%Y-%m-%d %H:%M"),
            a.kind,
            a.subject,
            f"{a.risk_percentage:.2f}" if a.risk_percentage is not None else "-",
            _risk_cell(a.risk_level) if a.risk_level else "-",
        )
    console.print(table)
    repo.close()


COMMANDS = {
    "suppliers": cmd_suppliers,
    "add-supplier": cmd_add_supplier,
    "remove-supplier": cmd_remove_supplier,
    "analyze": cmd_analyze,
    "supplier": cmd_supplier,
    "adjusted": cmd_adjusted,
    "land": cmd_land,
    "sea": cmd_sea,
    "insurance": cmd_insurance,
    "history": cmd_history,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shiprisk",
        description="Shipping and insurance risk scoring",
    )
    parser.add_argument("--db", help="SQLite database path (default: $SHIPRISK_DB_PATH)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--no-seed", action="store_true", help="Do not seed the default suppliers into an empty catalogue")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("suppliers", help="List the supplier catalogue")

    add = sub.add_parser("add-supplier", help="Add or update a supplier")
    add.add_argument("name")
    add.add_argument("--cost", type=float, required=True)
    add.add_argument("--rating", type=float, required=True, help="Out of 10")
    add.add_argument("--reviews", type=int, required=True)
    add.add_argument("--location")

    rm = sub.add_parser("remove-supplier", help="Remove a supplier from the catalogue")
    rm.add_argument("name")

    sub.add_parser("analyze", help="Score every supplier on cost, rating, and reviews")

    one = sub.add_parser("supplier", help="Score a single supplier")
    one.add_argument("name")

    adj = sub.add_parser("adjusted", help="Supplier scores adjusted for weather and news sentiment")
    adj.add_argument("--place", default="London", help="Where to read the weather")
    adj.add_argument("--news-query", default="logistics")

    land = sub.add_parser("land", help="Best supplier for a land route")
    land.add_argument("origin")
    land.add_argument("destination")

    sea = sub.add_parser("sea", help="Assess a sea shipment from a port's weather")
    sea.add_argument("place")

    ins = sub.add_parser("insurance", help="Insurance recommendations for a location")
    ins.add_argument("location")

    hist = sub.add_parser("history", help="Show recorded assessments")
    hist.add_argument("--limit", type=int, default=20)
    hist.add_argument("--kind")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)
    try:
        handler(args)
    except ShipRiskError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
