"""Rich terminal output for lists and ranking sessions.

Theme: Catppuccin Mocha (https://catppuccin.com/palette/)
"""

from __future__ import annotations

from datetime import datetime

from rich.align import Align
from rich.box import ROUNDED
from rich.console import Console, Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from ..engine import Progress
from ..lists import ListItem, ListStatus, RankList

# Catppuccin Mocha palette (subset in use)
MOCHA = {
    "red": "#f38ba8",
    "peach": "#fab387",
    "yellow": "#f9e2af",
    "green": "#a6e3a1",
    "sapphire": "#74c7ec",
    "blue": "#89b4fa",
    "lavender": "#b4befe",
    "mauve": "#cba6f7",
    "text": "#cdd6f4",
    "subtext0": "#a6adc8",
    "overlay1": "#7f849c",
    "overlay0": "#6c7086",
    "surface2": "#585b70",
    "surface1": "#45475a",
    "surface0": "#313244",
    "crust": "#11111b",
}

MOCHA_THEME = Theme({
    "info": MOCHA["sapphire"],
    "warning": MOCHA["peach"],
    "danger": MOCHA["red"],
    "success": MOCHA["green"],
})

STATUS_COLORS = {
    ListStatus.UNRANKED: MOCHA["overlay1"],
    ListStatus.RANKING: MOCHA["yellow"],
    ListStatus.RANKED: MOCHA["green"],
}


# ── Display helpers ──────────────────────────────────────────────────────


def _progress_bar(progress: Progress, width: int = 24) -> Text:
    """Build a bar like: ██████████░░░░░░ 3/8 (38%)"""
    filled = min(width, int(round(progress.percent / 100 * width)))

    bar = Text()
    bar.append("█" * filled, style=MOCHA["blue"])
    bar.append("░" * (width - filled), style=MOCHA["surface2"])
    bar.append(
        f" {progress.processed}/{progress.total} ({progress.percent}%)",
        style=f"bold {MOCHA['blue']}",
    )
    return bar


def _status_badge(status: ListStatus) -> Text:
    color = STATUS_COLORS.get(status, MOCHA["subtext0"])
    return Text(f" {status.value} ", style=f"bold {color}")


def _choice_card(key: str, item: ListItem, color: str) -> Panel:
    return Panel(
        Align.center(Text(item.text, style=f"bold {MOCHA['text']}")),
        title=f"[bold {color}]{key}[/bold {color}]",
        title_align="left",
        box=ROUNDED,
        border_style=color,
        padding=(1, 2),
    )


# ── Main output class ────────────────────────────────────────────────────


class TerminalOutput:
    """Rich terminal output formatter."""

    def __init__(self, console: Console | None = None, no_color: bool = False):
        if console:
            self.console = console
        elif no_color:
            self.console = Console(no_color=True, highlight=False, theme=MOCHA_THEME)
        else:
            self.console = Console(theme=MOCHA_THEME)

    def print_comparison(
        self,
        rank_list: RankList,
        candidate: ListItem,
        reference: ListItem,
        progress: Progress,
    ) -> None:
        """Print the question for one ranking step.

        Option 1 is always the candidate, option 2 the reference item.
        """
        table = Table.grid(expand=True, padding=(0, 1))
        table.add_column(ratio=1)
        table.add_column(ratio=1)
        table.add_row(
            _choice_card("1", candidate, MOCHA["mauve"]),
            _choice_card("2", reference, MOCHA["sapphire"]),
        )

        self.console.print()
        self.console.print(
            Panel(
                Group(
                    Text("Which do you prefer?", style=f"bold {MOCHA['text']}"),
                    table,
                    _progress_bar(progress),
                ),
                title=(
                    f"[bold {MOCHA['lavender']}]"
                    f"RANKING - {escape(rank_list.display_name.upper())}"
                    f"[/bold {MOCHA['lavender']}]"
                ),
                title_align="left",
                box=ROUNDED,
                border_style=MOCHA["lavender"],
                padding=(0, 1),
            )
        )

    def print_ranked(self, rank_list: RankList, show_ids: bool = False) -> None:
        """Print a ranked list as a numbered panel.

        With ``show_ids`` every ranked and waiting item is listed with its
        identifier, as needed by ``pairank remove``.
        """
        items = rank_list.ranked_items()
        if not items and not rank_list.unranked_items:
            self.console.print(
                f"[{MOCHA['yellow']}]'{escape(rank_list.display_name)}' has no ranking yet[/{MOCHA['yellow']}]"
            )
            return

        table = Table(show_header=False, box=None, padding=(0, 2), show_edge=False)
        table.add_column("Rank", style=f"bold {MOCHA['peach']}", justify="right")
        table.add_column("Item", style=MOCHA["text"])
        if show_ids:
            table.add_column("ID", style=MOCHA["overlay0"])
        for rank, item in enumerate(items, 1):
            row = [f"{rank}.", Text(item.text)]
            if show_ids:
                row.append(item.id)
            table.add_row(*row)

        renderables: list[RenderableType] = [table]
        if rank_list.unranked_items and show_ids:
            waiting_table = Table(show_header=False, box=None, padding=(0, 2), show_edge=False)
            waiting_table.add_column("Rank", style=MOCHA["yellow"], justify="right")
            waiting_table.add_column("Item", style=MOCHA["yellow"])
            waiting_table.add_column("ID", style=MOCHA["overlay0"])
            for item in rank_list.unranked_items:
                waiting_table.add_row("+", Text(item.text), item.id)
            renderables.append(
                Text(
                    f"\n{len(rank_list.unranked_items)} new item(s) waiting to be inserted:",
                    style=MOCHA["subtext0"],
                )
            )
            renderables.append(waiting_table)
        elif rank_list.unranked_items:
            waiting = Text()
            waiting.append(
                f"\n{len(rank_list.unranked_items)} new item(s) waiting to be inserted: ",
                style=MOCHA["subtext0"],
            )
            waiting.append(", ".join(i.text for i in rank_list.unranked_items), style=MOCHA["yellow"])
            renderables.append(waiting)

        self.console.print()
        self.console.print(
            Panel(
                Group(*renderables),
                title=(
                    f"[bold {MOCHA['green']}]"
                    f"RANKED - {escape(rank_list.display_name.upper())}"
                    f"[/bold {MOCHA['green']}]"
                ),
                title_align="left",
                box=ROUNDED,
                border_style=MOCHA["green"],
                padding=(0, 1),
            )
        )

    def print_list(self, rank_list: RankList) -> None:
        """Print a list's items with their identifiers."""
        if rank_list.status is ListStatus.RANKED:
            self.print_ranked(rank_list, show_ids=True)
            return

        header = Text()
        header.append(rank_list.display_name, style=f"bold {MOCHA['text']}")
        header.append("  ")
        header.append_text(_status_badge(rank_list.status))
        self.console.print()
        self.console.print(header)

        if not rank_list.items:
            self.console.print(f"[{MOCHA['overlay1']}]No items yet[/{MOCHA['overlay1']}]")
            return

        table = Table(box=ROUNDED, border_style=MOCHA["surface1"], show_lines=False)
        table.add_column("#", style=MOCHA["overlay1"], justify="right")
        table.add_column("Item", style=MOCHA["text"])
        table.add_column("ID", style=MOCHA["overlay0"])
        for i, item in enumerate(rank_list.items, 1):
            table.add_row(str(i), Text(item.text), item.id)
        self.console.print(table)

    def print_lists(
        self,
        lists: list[RankList],
        current_list_id: str | None = None,
    ) -> None:
        """Print an overview of every list."""
        table = Table(box=ROUNDED, border_style=MOCHA["surface1"])
        table.add_column("", width=1)
        table.add_column("Name", style=f"bold {MOCHA['text']}")
        table.add_column("Items", justify="right")
        table.add_column("Status")
        table.add_column("Created", style=MOCHA["subtext0"])
        table.add_column("ID", style=MOCHA["overlay0"])

        for rank_list in lists:
            marker = "*" if rank_list.id == current_list_id else ""
            count = len(rank_list.items) + len(rank_list.unranked_items)
            created = (
                datetime.fromtimestamp(rank_list.created_at / 1000).strftime("%Y-%m-%d")
                if rank_list.created_at else "-"
            )
            table.add_row(
                marker,
                Text(rank_list.display_name),
                str(count),
                _status_badge(rank_list.status),
                created,
                rank_list.id,
            )

        self.console.print(table)

    def print_message(self, message: str, style: str = "info") -> None:
        self.console.print(f"[{style}]{message}[/{style}]")
