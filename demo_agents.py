"""
demo_agents.py – Interactive demo for the Academy agents

Run:
    python demo_agents.py

Uses the live backend when .env holds AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_API_KEY
(or OPENAI_API_KEY); otherwise every agent answers from its mock payload.
The session state is threaded through each turn and printed at the end.
"""

from __future__ import annotations

import logging
import sys
import uuid
from pathlib import Path

# ── make src/ importable without installing the package ──────────────────────
sys.path.insert(0, str(Path(__file__).parent / "src"))

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table
from rich import box

from academy_agents.agent import Agent, AgentRun
from academy_agents.config import get_settings
from academy_agents.discovery_coach_agent import create_discovery_coach_agent
from academy_agents.errors import TerminalParseFailure, UnexpectedFailure
from academy_agents.lesson_personalization_agent import create_lesson_personalization_agent
from academy_agents.models import AgentContext, SessionState, UserProfile
from academy_agents.quiz_generation_agent import create_quiz_generation_agent

console = Console()


# ─── Display helpers ─────────────────────────────────────────────────────────

def show_settings() -> None:
    table = Table(box=box.ROUNDED, show_header=False, padding=(0, 1))
    table.add_column("Service", style="bold cyan", no_wrap=True)
    table.add_column("Status",  style="white")
    for service, status in get_settings().status_summary().items():
        table.add_row(service, status)
    console.print(Panel(table, title="[bold]Configuration[/bold]", border_style="magenta"))


def show_run(run: AgentRun) -> None:
    console.print(Panel(
        run.output.model_dump_json(by_alias=True, exclude_none=True, indent=2),
        title=f"[bold]{run.trace.agent_name} output[/bold]",
        border_style="green",
    ))

    attempts = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_violet", padding=(0, 1))
    attempts.add_column("#",      justify="right")
    attempts.add_column("Status", justify="center")
    attempts.add_column("ms",     justify="right")
    attempts.add_column("Error",  style="dim white")
    for record in run.trace.attempts:
        colour = "green" if record.status == "success" else "yellow"
        attempts.add_row(
            str(record.attempt + 1),
            f"[{colour}]{record.status}[/{colour}]",
            f"{record.duration_ms:.1f}",
            record.error_message,
        )
    console.print(Panel(
        attempts,
        title=f"[bold]Trace {run.trace.run_id}[/bold] [dim]({run.trace.mode}, {run.trace.total_ms:.0f} ms)[/dim]",
        border_style="blue",
    ))
    if not run.guardrails.passed:
        console.print(f"[yellow]{run.guardrails.summary()}[/yellow]")


# ─── Main ────────────────────────────────────────────────────────────────────

def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s", handlers=[RichHandler(console=console)])

    console.print()
    console.print(Panel(
        "[bold]VOS Academy — Agent Playground[/bold]\n"
        "[dim]Discovery Coach  •  Quiz Generation  •  Lesson Personalization[/dim]",
        style="on dark_violet",
        expand=False,
    ))
    show_settings()

    role  = Prompt.ask("[cyan]Your role[/cyan]", default="Sales")
    level = IntPrompt.ask("[cyan]Maturity level (0-5)[/cyan]", default=1)
    context = AgentContext(user_profile=UserProfile(role=role, maturity_level=max(0, min(5, level))))
    state   = SessionState(session_id=str(uuid.uuid4()), user_id="demo-user")

    try:
        agents: dict[str, Agent] = {
            "1": create_discovery_coach_agent(),
            "2": create_quiz_generation_agent(),
            "3": create_lesson_personalization_agent(),
        }

        while True:
            choice = Prompt.ask(
                "\n[cyan]Agent[/cyan] [dim](1 coach, 2 quiz, 3 path, q quit)[/dim]",
                choices=["1", "2", "3", "q"],
                default="1",
            )
            if choice == "q":
                break
            text = Prompt.ask("   >")
            try:
                run = agents[choice].run(text, context, state)
            except TerminalParseFailure as e:
                console.print(f"[bold red]Gave up after {e.attempts} attempts:[/bold red] {e}")
                continue
            except UnexpectedFailure as e:
                console.print(f"[bold red]Backend error:[/bold red] {e}")
                continue
            state = run.session_state
            show_run(run)

    except EnvironmentError as e:
        console.print(f"\n[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")

    console.rule(f"[bold green]Session {state.session_id[:8]} — {len(state.conversation_history)} messages[/bold green]")


if __name__ == "__main__":
    main()
