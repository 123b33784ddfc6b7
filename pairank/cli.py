"""Pairank CLI - rank lists through pairwise preference questions.

Main command-line interface for managing lists and running rankings.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from . import __version__
from .engine import InsufficientItems, RankingError
from .lists import ListNotFound, ListStatus, RankList, Workspace
from .output.json_out import JSONOutput
from .output.markdown import MarkdownOutput
from .output.terminal import TerminalOutput
from .share import (
    DEFAULT_BASE_URL,
    ShareLinkError,
    create_share_url,
    decode_payload,
    extract_share_data,
    list_from_payload,
    payload_from_list,
)
from .store import default_state_path, load_state, save_state

logger = logging.getLogger(__name__)

# Answers accepted at each ranking step
CHOICE_CANDIDATE = "1"
CHOICE_REFERENCE = "2"
CHOICE_STOP = "s"
CHOICE_QUIT = "q"
CHOICES = [CHOICE_CANDIDATE, CHOICE_REFERENCE, CHOICE_STOP, CHOICE_QUIT]


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def prompt_choice(console: Console) -> str:
    """Ask for one ranking answer on the terminal."""
    return Prompt.ask(
        "[bold]1[/bold] / [bold]2[/bold], [bold]s[/bold] to stop, [bold]q[/bold] to save and quit",
        choices=CHOICES,
        show_choices=False,
        console=console,
    )


def resolve_list(workspace: Workspace, ref: str | None) -> RankList:
    """Find the list named by ``ref``, defaulting to the current list."""
    if ref is not None:
        return workspace.find_list(ref)
    if workspace.current_list_id is not None:
        return workspace.find_list(workspace.current_list_id)
    return workspace.lists[0]


def run_ranking(
    workspace: Workspace,
    rank_list: RankList,
    output: TerminalOutput,
    state_path: Path,
    ask: Callable[[Console], str] = prompt_choice,
) -> int:
    """Drive the in-flight session interactively until it ends or the user leaves.

    The workspace is saved after every answer, so an interrupted session
    resumes where it left off.

    Returns:
        Exit code
    """
    while True:
        candidate, reference = workspace.comparison()
        output.print_comparison(rank_list, candidate, reference, workspace.progress())

        try:
            choice = ask(output.console).strip().lower()
        except EOFError:
            choice = CHOICE_QUIT

        if choice == CHOICE_QUIT:
            save_state(workspace, state_path)
            output.print_message(
                "Progress saved. Run 'pairank rank' again to resume.", style="info"
            )
            return 0

        if choice == CHOICE_STOP:
            stopped = workspace.stop_ranking()
            save_state(workspace, state_path)
            if stopped.status is ListStatus.RANKED:
                output.print_message("Insertion stopped; items not yet placed were removed.", style="warning")
                output.print_ranked(stopped)
            else:
                output.print_message("Ranking stopped; the list is unranked again.", style="warning")
            return 0

        if choice not in (CHOICE_CANDIDATE, CHOICE_REFERENCE):
            output.print_message(f"Unknown choice '{escape(choice)}'", style="danger")
            continue

        finished = workspace.compare(choice == CHOICE_CANDIDATE)
        save_state(workspace, state_path)
        if finished is not None:
            output.print_ranked(finished)
            return 0


def _cmd_new(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = workspace.create_list(parsed_args.name or "")
    print(f"Created list '{rank_list.display_name}' ({rank_list.id})")
    return 0


def _cmd_lists(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    output.print_lists(workspace.lists, workspace.current_list_id)
    return 0


def _cmd_show(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    output.print_list(resolve_list(workspace, parsed_args.list))
    return 0


def _cmd_use(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = workspace.set_current_list(parsed_args.list)
    print(f"Now using list '{rank_list.display_name}' ({rank_list.id})")
    return 0


def _cmd_rename(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = workspace.find_list(parsed_args.list)
    workspace.rename_list(rank_list.id, parsed_args.name)
    print(f"Renamed list to '{rank_list.display_name}'")
    return 0


def _cmd_delete(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = workspace.find_list(parsed_args.list)
    workspace.delete_list(rank_list.id)
    print(f"Deleted list '{rank_list.display_name}'")
    return 0


def _cmd_add(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = resolve_list(workspace, parsed_args.list)
    added = [workspace.add_item(rank_list.id, text) for text in parsed_args.text]
    added = [item for item in added if item is not None]

    print(f"Added {len(added)} item(s) to '{rank_list.display_name}'")
    if added and rank_list.status is ListStatus.RANKED:
        print("Run 'pairank rank' to insert them into the existing ranking")
    return 0


def _cmd_remove(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = workspace.find_list(parsed_args.list)
    if not workspace.delete_item(rank_list.id, parsed_args.item_id):
        print(f"Error: No item '{parsed_args.item_id}' in '{rank_list.display_name}'", file=sys.stderr)
        return 1
    print(f"Removed item from '{rank_list.display_name}'")
    return 0


def _cmd_rank(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = resolve_list(workspace, parsed_args.list)

    if workspace.session_list_id == rank_list.id and not parsed_args.full:
        if parsed_args.verbose:
            print(f"Resuming ranking of '{rank_list.display_name}'", file=sys.stderr)
    elif parsed_args.full or rank_list.status is not ListStatus.RANKED:
        workspace.start_ranking(rank_list.id)
    elif rank_list.unranked_items:
        workspace.start_partial_ranking(rank_list.id)
    else:
        output.print_message(
            f"'{escape(rank_list.display_name)}' is already ranked; use --full to re-rank it",
            style="info",
        )
        output.print_ranked(rank_list)
        return 0

    save_state(workspace, parsed_args.state)
    return run_ranking(workspace, rank_list, output, parsed_args.state, ask=parsed_args.ask)


def _cmd_stop(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = resolve_list(workspace, parsed_args.list)
    if workspace.session_list_id != rank_list.id:
        print(f"Error: '{rank_list.display_name}' is not being ranked", file=sys.stderr)
        return 1
    stopped = workspace.stop_ranking()
    print(f"Stopped ranking '{stopped.display_name}' (now {stopped.status.value})")
    return 0


def _cmd_share(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = resolve_list(workspace, parsed_args.list)
    share_type = "unranked"
    if parsed_args.ranked:
        if rank_list.ranked_ids is None:
            print(f"Error: '{rank_list.display_name}' has not been ranked yet", file=sys.stderr)
            return 1
        share_type = "ranked"

    payload = payload_from_list(rank_list, share_type)
    print(create_share_url(payload, parsed_args.base_url))
    return 0


def _cmd_import(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    payload = decode_payload(extract_share_data(parsed_args.link))
    rank_list = workspace.load_shared(list_from_payload(payload))
    print(f"Imported {payload.type} list '{rank_list.display_name}' "
          f"with {len(rank_list.items)} item(s) ({rank_list.id})")
    return 0


def _cmd_export(workspace: Workspace, parsed_args, output: TerminalOutput) -> int:
    rank_list = resolve_list(workspace, parsed_args.list)
    if parsed_args.format == 'json':
        content = JSONOutput().to_json(rank_list)
    else:
        content = MarkdownOutput().generate(rank_list)

    if parsed_args.output:
        parsed_args.output.write_text(content, encoding='utf-8')
        print(f"Report saved to: {parsed_args.output}", file=sys.stderr)
    else:
        print(content)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pairank',
        description='Rank a list by answering "which do you prefer?" questions',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pairank new "Pizza toppings"
  pairank add "Pizza toppings" mushroom olive basil pineapple
  pairank use "Pizza toppings"
  pairank rank
  pairank add "Pizza toppings" anchovy       # then 'rank' inserts it
  pairank export "Pizza toppings" --format json
  pairank share "Pizza toppings" --ranked
  pairank import "https://pairank.app/?data=..."
        """
    )

    parser.add_argument(
        '--state',
        type=Path,
        help='Workspace state file (default: $PAIRANK_STATE or ~/.pairank/state.json)'
    )

    parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored output'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    sub = parser.add_subparsers(dest='command', metavar='COMMAND')
    sub.required = True

    p = sub.add_parser('new', help='Create a new list')
    p.add_argument('name', nargs='?', help='List name')
    p.set_defaults(handler=_cmd_new)

    p = sub.add_parser('lists', help='Show all lists')
    p.set_defaults(handler=_cmd_lists)

    p = sub.add_parser('show', help='Show a list and its ranking')
    p.add_argument('list', nargs='?', help='List name or id (default: current list)')
    p.set_defaults(handler=_cmd_show)

    p = sub.add_parser('use', help='Make a list the current list')
    p.add_argument('list', help='List name or id')
    p.set_defaults(handler=_cmd_use)

    p = sub.add_parser('rename', help='Rename a list')
    p.add_argument('list', help='List name or id')
    p.add_argument('name', help='New name')
    p.set_defaults(handler=_cmd_rename)

    p = sub.add_parser('delete', help='Delete a list')
    p.add_argument('list', help='List name or id')
    p.set_defaults(handler=_cmd_delete)

    p = sub.add_parser('add', help='Add items to a list')
    p.add_argument('list', help='List name or id')
    p.add_argument('text', nargs='+', help='Item text (one argument per item)')
    p.set_defaults(handler=_cmd_add)

    p = sub.add_parser('remove', help='Remove an item from a list')
    p.add_argument('list', help='List name or id')
    p.add_argument('item_id', help='Item id (see "pairank show")')
    p.set_defaults(handler=_cmd_remove)

    p = sub.add_parser('rank', help='Rank a list interactively (resumes an unfinished ranking)')
    p.add_argument('list', nargs='?', help='List name or id (default: current list)')
    p.add_argument(
        '--full',
        action='store_true',
        help='Re-rank every item from scratch instead of inserting new items'
    )
    p.set_defaults(handler=_cmd_rank)

    p = sub.add_parser('stop', help='Abandon the ranking in progress')
    p.add_argument('list', nargs='?', help='List name or id (default: current list)')
    p.set_defaults(handler=_cmd_stop)

    p = sub.add_parser('share', help='Print a share link for a list')
    p.add_argument('list', nargs='?', help='List name or id (default: current list)')
    p.add_argument('--ranked', action='store_true', help='Share the ranked order')
    p.add_argument(
        '--base-url',
        default=DEFAULT_BASE_URL,
        help=f'Base URL for the link (default: {DEFAULT_BASE_URL})'
    )
    p.set_defaults(handler=_cmd_share)

    p = sub.add_parser('import', help='Import a list from a share link')
    p.add_argument('link', help='Share URL or its encoded data')
    p.set_defaults(handler=_cmd_import)

    p = sub.add_parser('export', help='Export a list as markdown or JSON')
    p.add_argument('list', nargs='?', help='List name or id (default: current list)')
    p.add_argument(
        '-f', '--format',
        choices=['markdown', 'json'],
        default='markdown',
        help='Output format (default: markdown)'
    )
    p.add_argument(
        '-o', '--output',
        type=Path,
        help='Output file (default: stdout)'
    )
    p.set_defaults(handler=_cmd_export)

    return parser


def main(args: list[str] | None = None, ask: Callable[[Console], str] = prompt_choice) -> int:
    """Main CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)
        ask: Source of ranking answers (defaults to a terminal prompt)

    Returns:
        Exit code
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)
    configure_logging(parsed_args.verbose)

    state_path = parsed_args.state or default_state_path()
    parsed_args.state = state_path
    parsed_args.ask = ask
    output = TerminalOutput(no_color=parsed_args.no_color)

    try:
        workspace = load_state(state_path) or Workspace()
        if parsed_args.verbose:
            print(f"Using state file: {state_path}", file=sys.stderr)

        code = parsed_args.handler(workspace, parsed_args, output)
        if parsed_args.command not in ('lists', 'show', 'share', 'export'):
            save_state(workspace, state_path)
        return code

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except InsufficientItems as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (RankingError, ListNotFound, ShareLinkError, OSError) as e:
        print(f"Error ({type(e).__name__}): {e}", file=sys.stderr)
        if parsed_args.verbose:
            import traceback
            traceback.print_exc()
        else:
            print("Use --verbose for full traceback", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
