"""Console rendering of a waste Report."""
from typing import Optional

from rich.console import Console
from rich.rule import Rule

from analysis.models import Report


def _money(amount: int) -> str:
    return f"${amount:,}"


def print_report(report: Report, console: Optional[Console] = None) -> None:
    console = console or Console()

    if report.is_heuristic:
        console.print("[yellow]Note: Unable to detect specific waste. Showing conservative estimate.[/yellow]")

    console.print(Rule(style="green"))
    console.print(f"[bold yellow]ANNUAL WASTE DETECTED: {_money(report.annual_savings)}[/bold yellow]")
    console.print(Rule(style="green"))
    console.print()

    b = report.breakdown
    console.print("Breakdown by Category:")
    if b.memory > 0:
        console.print(f"  [red]Memory:[/red] {_money(b.memory)}/mo ({_money(b.memory * 12)}/year)")
    if b.cpu > 0:
        console.print(f"  [yellow]CPU:[/yellow] {_money(b.cpu)}/mo ({_money(b.cpu * 12)}/year)")
    if b.load_balancers > 0:
        console.print(
            f"  [blue]Load Balancers:[/blue] {_money(b.load_balancers)}/mo "
            f"({_money(b.load_balancers * 12)}/year), {report.orphaned_load_balancers} orphaned"
        )
    if b.storage > 0:
        console.print(
            f"  [blue]Storage:[/blue] {_money(b.storage)}/mo "
            f"({_money(b.storage * 12)}/year), {report.unbound_storage_gb}GB unbound"
        )
    console.print()

    offender = report.top_offender
    if offender is not None and offender.total_waste_cost > 0:
        console.print("[red]#1 Biggest Waster:[/red]")
        console.print(f"  Pod: {offender.name}")
        console.print(f"  Namespace: {offender.namespace}")
        console.print()
        if offender.actual is not None and offender.actual.memory_raw:
            console.print("  Memory:")
            console.print(f"    Requested: {offender.requests.memory_raw or 'not set'}")
            console.print(f"    Actually Using: {offender.actual.memory_raw}")
            console.print()
        elif offender.requests.memory_raw and offender.limits.memory_raw:
            console.print(f"  Memory: Request {offender.requests.memory_raw}, Limit {offender.limits.memory_raw}")
            console.print()
        console.print(f"  Wasting: {_money(offender.total_waste_cost * 12)}/year")
        if offender.memory_waste_cost >= offender.cpu_waste_cost:
            console.print("[yellow]  Fix: Lower memory request to match actual usage[/yellow]")
        else:
            console.print("[yellow]  Fix: Lower CPU request to match actual usage[/yellow]")
        console.print()

    if report.total_issues > 1:
        console.print(f"[blue]{report.total_issues} Total Issues Found[/blue]")
        console.print(
            f"  {report.pods_over_provisioned} over-provisioned pods, "
            f"{report.pods_no_requests} pods without requests, "
            f"{report.orphaned_load_balancers} orphaned load balancers"
        )
        console.print()

    console.print("Cluster Summary:")
    console.print(f"  Pods: {report.total_pods} | Nodes: {report.total_nodes} | Namespaces: {report.namespaces}")
    if report.metrics_available:
        console.print("  Analysis: Real usage data")
    else:
        console.print("  Analysis: Request/limit estimation")
        console.print("  [yellow]Install metrics-server for accurate usage tracking[/yellow]")
    console.print()
