# src/cli/chat_repl.py
"""
Interactive chat REPL over a config-built Agent.

    python -m cli.chat_repl --profile local_qwen

Commands:
    /reset          drop the conversation (identity is kept)
    /history        show the conversation so far
    /save PATH      write a JSON transcript
    /quit           exit

--auto-truncate applies a simple caller policy: on a context-limit
failure, drop the oldest turn and retry until the turn fits or the
history is empty.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from agent.agent import Agent
from agent.bootstrap import build_agent_runtime
from agent.transcript import load_transcript, save_transcript
from env.loader import load_environment
from llm_stack.errors import ErrorKind
from monitoring.bus import EventBus
from runtime.conversation import TurnOutcome, converse


def converse_with_truncation(
    agent: Agent,
    text: str,
    bus: Optional[EventBus] = None,
) -> TurnOutcome:
    """converse(), dropping the oldest turn while the context is too long."""
    outcome = converse(agent, text, bus)
    while outcome.kind is ErrorKind.CONTEXT_LIMIT_EXCEEDED and agent.turn_count > 0:
        agent.truncate(agent.turn_count - 1)
        outcome = converse(agent, text, bus)
    return outcome


def render_history(console: Console, agent: Agent) -> None:
    table = Table(title=f"{agent.name} history", show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Role")
    table.add_column("Content", overflow="fold")
    for idx, msg in enumerate(agent.history, start=1):
        table.add_row(str(idx), msg.role.value, msg.content)
    console.print(table)


def handle_command(console: Console, agent: Agent, line: str) -> bool:
    """Run a slash command. Returns False when the REPL should exit."""
    cmd, _, arg = line.partition(" ")
    if cmd in ("/quit", "/exit"):
        return False
    if cmd == "/reset":
        agent.reset()
        console.print("[dim]History cleared.[/dim]")
    elif cmd == "/history":
        render_history(console, agent)
    elif cmd == "/save":
        if not arg.strip():
            console.print("[red]Usage: /save PATH[/red]")
        else:
            path = save_transcript(agent, Path(arg.strip()))
            console.print(f"[dim]Saved transcript to {path}[/dim]")
    else:
        console.print(f"[red]Unknown command: {cmd}[/red]")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Chat with a local GGUF model.")
    parser.add_argument("--profile", default=None, help="Env profile name (from env.yaml)")
    parser.add_argument("--resume", type=Path, default=None, help="Transcript JSON to continue")
    parser.add_argument(
        "--auto-truncate",
        action="store_true",
        help="Drop oldest turns automatically when the context is full",
    )
    args = parser.parse_args(argv)

    console = Console()
    env = load_environment(args.profile)

    history = load_transcript(args.resume).messages if args.resume else None

    with build_agent_runtime(env, history=history) as rt:
        agent = rt.agent

        console.print(
            Panel(
                agent.identity,
                title=f"{agent.name} ({env.name})",
                subtitle="/history /reset /save PATH /quit",
            )
        )

        while True:
            try:
                line = console.input("[bold cyan]you>[/bold cyan] ").strip()
            except (EOFError, KeyboardInterrupt):
                console.print()
                break
            if not line:
                continue
            if line.startswith("/"):
                if not handle_command(console, agent, line):
                    break
                continue

            with console.status("generating..."):
                if args.auto_truncate:
                    outcome = converse_with_truncation(agent, line, rt.bus)
                else:
                    outcome = converse(agent, line, rt.bus)

            if outcome.ok:
                console.print(f"[bold green]{agent.name}>[/bold green] {outcome.reply}")
            elif outcome.kind is ErrorKind.BACKEND_UNAVAILABLE:
                console.print(f"[bold red]fatal:[/bold red] {outcome.hint}")
                console.print(f"[dim]{outcome.error}[/dim]")
                return 1
            else:
                console.print(f"[yellow]{outcome.hint}[/yellow]")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
