"""Markdown output formatter for lists."""

from __future__ import annotations

import re
from datetime import datetime

from ..lists import ListStatus, RankList

_MD_SPECIAL = re.compile(r'([\\`*_\{\}\[\]()#+\-.!|<>])')


def _escape_md(text: str) -> str:
    """Escape markdown special characters in user-derived text."""
    return _MD_SPECIAL.sub(r'\\\1', text)


class MarkdownOutput:
    """Markdown output formatter."""

    def generate(self, rank_list: RankList, include_footer: bool = True) -> str:
        """Generate a markdown document for a list.

        Ranked lists are numbered in rank order; anything else is a bullet
        list in entry order.
        """
        sections = [f"# {_escape_md(rank_list.display_name)}"]

        if rank_list.status is ListStatus.RANKED and rank_list.ranked_ids is not None:
            items = rank_list.ranked_items()
            sections.append(
                "\n".join(f"{rank}. {_escape_md(item.text)}" for rank, item in enumerate(items, 1))
                or "_No items_"
            )
        else:
            sections.append(f"_Status: {rank_list.status.value}_")
            sections.append(
                "\n".join(f"- {_escape_md(item.text)}" for item in rank_list.items)
                or "_No items_"
            )

        if rank_list.unranked_items:
            sections.append(
                "## Not yet ranked\n\n"
                + "\n".join(f"- {_escape_md(item.text)}" for item in rank_list.unranked_items)
            )

        if include_footer:
            sections.append(
                f"---\n*Generated by Pairank on {datetime.now().strftime('%Y-%m-%d %H:%M')}*"
            )

        return "\n\n".join(sections) + "\n"
