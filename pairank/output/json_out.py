"""JSON output formatter for lists.

Generates structured JSON for programmatic use.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from .. import __version__
from ..lists import ListStatus, RankList


class JSONOutput:
    """JSON output formatter."""

    def generate(self, rank_list: RankList) -> dict:
        """Generate a JSON-serializable dictionary for a list.

        Ranked lists report items in rank order with a 1-based ``rank``;
        other lists report items in entry order with ``rank`` set to None.
        """
        ranked = rank_list.status is ListStatus.RANKED and rank_list.ranked_ids is not None

        if ranked:
            items = [
                {"rank": rank, "id": item.id, "text": item.text}
                for rank, item in enumerate(rank_list.ranked_items(), 1)
            ]
        else:
            items = [
                {"rank": None, "id": item.id, "text": item.text}
                for item in rank_list.items
            ]

        result: dict[str, Any] = {
            "metadata": {
                "generated_at": datetime.now().isoformat(),
                "tool": "Pairank",
                "version": __version__,
            },
            "list": {
                "id": rank_list.id,
                "name": rank_list.name,
                "status": rank_list.status.value,
                "item_count": len(items),
            },
            "items": items,
        }

        if rank_list.unranked_items:
            result["unranked_items"] = [
                {"id": item.id, "text": item.text} for item in rank_list.unranked_items
            ]

        return result

    def to_json(self, rank_list: RankList, indent: int = 2) -> str:
        return json.dumps(self.generate(rank_list), indent=indent, ensure_ascii=False)

    def save(self, rank_list: RankList, output_path: str | Path) -> None:
        Path(output_path).write_text(self.to_json(rank_list), encoding='utf-8')
