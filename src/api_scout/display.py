# display.py
# All terminal output for the API discovery workflow.
#
# This module owns presentation entirely. workflow.py and runner.py never
# format strings — they call named functions here.
#
# Colour language:
#   cyan    — workflow / routing events
#   blue    — discovery stage
#   magenta — consumption stage
#   yellow  — tool approvals
#   green   — success / confirmed
#   red     — failures, halts, denials

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.rule import Rule
from rich.text import Text

from api_scout.models import ApprovalRequest, ApprovalStatus

console = Console()

_STAGE_COLOR = {"discovery": "blue", "consumption": "magenta"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


def _stage_color(stage: str | None) -> str:
    return _STAGE_COLOR.get(stage or "", "cyan")


# ---------------------------------------------------------------------------
# Workflow entry
# ---------------------------------------------------------------------------


def banner(model: str, workflow_id: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]API Scout[/bold cyan]\n"
            "[dim]Discover a free API, document it, then answer with it[/dim]\n\n"
            f"[dim]Model       :[/dim] [white]{model}[/white]\n"
            f"[dim]Workflow id :[/dim] [white]{workflow_id}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def prompt_received(run_id: str, prompt: str) -> None:
    console.print()
    console.print(Rule(f"[cyan]NEW REQUEST[/cyan] [dim]{run_id[:8]}[/dim]", style="cyan"))
    console.print(
        Panel(
            Text(prompt, style="white"),
            title=_label("USER PROMPT", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


def state_changed(run_id: str, state) -> None:
    console.print(f"[dim]  {run_id[:8]} → {state.value}[/dim]")


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def stage_start(stage: str | None, agent_name: str, log_length: int) -> None:
    color = _stage_color(stage)
    console.print()
    console.print(
        _label(f"{(stage or 'stage').upper()}", color),
        f"[{color}] → Running [bold]{agent_name}[/bold] over {log_length} item(s)…[/{color}]",
    )


def stage_items(stage: str | None, new_count: int, log_length: int) -> None:
    color = _stage_color(stage)
    console.print(
        f"  [{color}]↳ {new_count} new item(s)[/{color}] [dim]log now {log_length}[/dim]"
    )


def discovery_result(text: str) -> None:
    console.print()
    console.print(
        Panel(
            Markdown(text),
            title=_label("API DOCUMENTATION", "blue"),
            border_style="blue",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Approvals
# ---------------------------------------------------------------------------


def approval_requested(request: ApprovalRequest) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{escape(request.server_label)}[/bold white] → "
            f"[bold yellow]{escape(request.name)}[/bold yellow]\n"
            f"[dim]{escape(_mono(request.arguments, 300))}[/dim]",
            title=_label("APPROVAL REQUIRED", "yellow"),
            border_style="yellow",
            padding=(0, 2),
        )
    )


def approval_pending(request: ApprovalRequest) -> None:
    console.print(f"  [yellow]… waiting for a decision on[/yellow] [dim]{escape(request.id)}[/dim]")


def approval_decided(request: ApprovalRequest, status: ApprovalStatus) -> None:
    if status is ApprovalStatus.APPROVED:
        console.print(f"  [bold green]✓ Approved[/bold green]  [dim]{escape(request.name)}[/dim]")
    else:
        console.print(f"  [bold red]✗ Denied[/bold red]  [dim]{escape(request.name)}[/dim]")


def ask_approval(request: ApprovalRequest) -> bool:
    return Confirm.ask(
        f"[yellow]Allow[/yellow] [bold]{escape(request.name)}[/bold] on {escape(request.server_label)}?",
        console=console,
        default=False,
    )


# ---------------------------------------------------------------------------
# Final result
# ---------------------------------------------------------------------------


def final_result(result: str) -> None:
    console.print()
    console.print(
        Panel(
            Text(result, style="white"),
            title=_label("RESULT", "green"),
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


def halt(stage: str | None, reason: str) -> None:
    console.print()
    console.print(
        Panel(
            Text(reason, style="bold white"),
            title=_label(f"HALT{f' · {stage.upper()}' if stage else ''}", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
