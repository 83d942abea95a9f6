"""Command-line entry point.

Usage:
    lupine simulate --games 100 --seed 42     # Random games with replay checks
    lupine init-db --config lupine.yaml       # Create the database schema
    lupine replay 3                           # Replay game 3 from the configured database
"""

import argparse
import asyncio
import logging
import random
import sys
from collections import Counter
from typing import Optional

from rich.box import ROUNDED
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from lupine.config import AppConfig, load_config
from lupine.engine.controller import GameController
from lupine.replay import replay_game, replay_game_async
from lupine.simulation import MAX_PLAYERS, MIN_PLAYERS, play_random_game
from lupine.store.state_store import StateStore
from lupine.storyteller import Narrator, StubStoryteller

console = Console()
logger = logging.getLogger("lupine")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


async def run_simulation(
    config: AppConfig,
    games: int,
    seed: Optional[int],
    min_players: int,
    max_players: int,
    database_url: str,
) -> int:
    """Play random games, replay each, and print a summary. Returns an exit code."""
    if seed is None:
        seed = random.randint(1, 1000000)
    rng = random.Random(seed)

    console.print()
    console.print(Panel.fit(
        f"[bold cyan]Lupine simulation[/bold cyan]\n"
        f"[dim]Running [yellow]{games:,}[/yellow] games, seed {seed}[/dim]",
        border_style="cyan",
    ))

    store = StateStore(database_url, echo=config.echo_sql)
    narrator = None
    if config.storyteller_enabled:
        narrator = Narrator(store, StubStoryteller(), timeout=config.storyteller_timeout)
    controller = GameController(store, narrator=narrator)

    winners: Counter = Counter()
    rounds: list[int] = []
    stalled = 0
    mismatches: list[str] = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(bar_width=40),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Playing games...", total=games)
        for _ in range(games):
            n = rng.randint(min_players, max_players)
            result = await play_random_game(controller, store, rng, n=n)
            await controller.drain()
            if result.finished:
                winners[result.winner] += 1
                rounds.append(result.rounds)
            else:
                stalled += 1

            replay = await replay_game_async(store, result.game_id)
            if not replay.matches:
                mismatches.append(f"game {result.game_id}: {len(replay.errors)} replay error(s)")
            progress.advance(task)

    store.dispose()

    console.print()
    summary = Table(title="[bold]Summary[/bold]", show_header=False, box=None)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="white", justify="right")
    summary.add_row("Games finished", f"[green]{sum(winners.values()):,}[/green]")
    summary.add_row("Games stalled", f"[yellow]{stalled:,}[/yellow]")
    if rounds:
        summary.add_row("Average rounds", f"{sum(rounds) / len(rounds):.1f}")
    summary.add_row(
        "Replay mismatches",
        f"[red]{len(mismatches):,}[/red]" if mismatches else "[green]0[/green]",
    )
    console.print(summary)

    if winners:
        console.print()
        table = Table(title="[bold]Winner Distribution[/bold]", box=ROUNDED)
        table.add_column("Team", style="cyan")
        table.add_column("Count", justify="right")
        table.add_column("Percentage", style="yellow", justify="right")
        finished = sum(winners.values())
        for team, count in sorted(winners.items()):
            color = "green" if team == "villager" else "red"
            table.add_row(
                f"[{color}]{team}[/{color}]",
                f"[{color}]{count:,}[/{color}]",
                f"{count / finished * 100:.1f}%",
            )
        console.print(table)

    if mismatches:
        console.print()
        for line in mismatches[:10]:
            console.print(f"  [red]{line}[/red]")
        return 1
    return 0


def cmd_simulate(args: argparse.Namespace, config: AppConfig) -> int:
    if not MIN_PLAYERS <= args.min_players <= args.max_players <= MAX_PLAYERS:
        console.print(f"[red]Player counts must satisfy {MIN_PLAYERS} <= min <= max <= {MAX_PLAYERS}[/red]")
        return 2
    return asyncio.run(run_simulation(
        config,
        games=args.games,
        seed=args.seed,
        min_players=args.min_players,
        max_players=args.max_players,
        database_url=args.database or "sqlite://",
    ))


def cmd_init_db(args: argparse.Namespace, config: AppConfig) -> int:
    store = StateStore(config.database_url, echo=config.echo_sql)
    store.dispose()
    console.print(f"[green]Schema ready at {config.database_url}[/green]")
    return 0


def cmd_replay(args: argparse.Namespace, config: AppConfig) -> int:
    store = StateStore(config.database_url, echo=config.echo_sql)
    try:
        result = replay_game(store, args.game_id)
    except (KeyError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.dispose()

    table = Table(title=f"[bold]Replay of game {result.game_id}[/bold]", box=ROUNDED)
    table.add_column("Player", justify="right")
    table.add_column("Recorded")
    table.add_column("Replayed")
    for player_id, alive in result.source_alive.items():
        replayed = result.replay_alive.get(player_id)
        table.add_row(
            str(player_id),
            "alive" if alive else "dead",
            "alive" if replayed else "dead",
        )
    console.print(table)
    console.print(f"Status: {result.source_status} / {result.replay_status}")
    if result.matches:
        console.print(Panel.fit("[bold green]Replay matches[/bold green]", border_style="green"))
        return 0
    console.print(Panel.fit("[bold red]Replay diverged[/bold red]", border_style="red"))
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lupine",
        description="Lupine - Werewolf game engine server tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-level", help="Override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    simulate = sub.add_parser("simulate", help="Play random games and check replays")
    simulate.add_argument("--games", type=int, default=10, help="Number of games (default: 10)")
    simulate.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate.add_argument("--min-players", type=int, default=MIN_PLAYERS)
    simulate.add_argument("--max-players", type=int, default=MAX_PLAYERS)
    simulate.add_argument(
        "--database",
        default=None,
        help="Database URL for simulated games (default: in-memory)",
    )
    simulate.set_defaults(func=cmd_simulate)

    init_db = sub.add_parser("init-db", help="Create the database schema")
    init_db.set_defaults(func=cmd_init_db)

    replay = sub.add_parser("replay", help="Replay a recorded game")
    replay.add_argument("game_id", type=int)
    replay.set_defaults(func=cmd_replay)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config(args.config)
    configure_logging(args.log_level or config.log_level)
    logger.debug("Loaded configuration: %s", config)
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
