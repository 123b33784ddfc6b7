"""Share-link encoding for lists.

A share link carries a list's name and item texts as URL-safe base64 JSON
in the ``data`` query parameter. Item identifiers are not shared; the
receiving side generates fresh ones.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from .lists import ListItem, ListStatus, RankList, generate_id

SHARE_TYPES = ("unranked", "ranked")
DEFAULT_BASE_URL = "https://pairank.app/"


class ShareLinkError(ValueError):
    """Raised when share data cannot be decoded into a valid payload."""


@dataclass
class SharePayload:
    """What travels inside a share link."""
    type: str
    name: str = ""
    items: list[str] = field(default_factory=list)


def encode_payload(payload: SharePayload) -> str:
    """Encode a payload as unpadded URL-safe base64 JSON."""
    raw = json.dumps(
        {"type": payload.type, "name": payload.name, "items": payload.items},
        ensure_ascii=False,
        separators=(",", ":"),
    ).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_payload(encoded: str) -> SharePayload:
    """Decode share data produced by :func:`encode_payload`.

    Raises:
        ShareLinkError: If the data is not valid base64 JSON or lacks a
            valid ``type`` or an ``items`` list
    """
    encoded = encoded.strip()
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ShareLinkError(f"Share data could not be decoded: {e}") from e

    if not isinstance(data, dict):
        raise ShareLinkError("Share data is not an object")
    if data.get("type") not in SHARE_TYPES:
        raise ShareLinkError(f"Unknown share type: {data.get('type')!r}")
    if not isinstance(data.get("items"), list):
        raise ShareLinkError("Share data has no item list")

    return SharePayload(
        type=data["type"],
        name=str(data.get("name") or ""),
        items=[str(i) for i in data["items"]],
    )


def create_share_url(payload: SharePayload, base_url: str = DEFAULT_BASE_URL) -> str:
    """Build a share URL; any existing query string is replaced."""
    parts = urlsplit(base_url)
    query = urlencode({"data": encode_payload(payload)})
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", query, ""))


def extract_share_data(link: str) -> str:
    """Get the encoded data from a full share URL or a bare encoded string."""
    link = link.strip()
    parts = urlsplit(link)
    if parts.scheme or parts.query:
        values = parse_qs(parts.query).get("data")
        if not values:
            raise ShareLinkError("Share URL has no 'data' parameter")
        return values[0]
    return link


def payload_from_list(rank_list: RankList, share_type: str = "unranked") -> SharePayload:
    """Build a payload from a list.

    Ranked payloads carry item texts in ranked order; unranked payloads
    carry every item in list order, including items awaiting insertion.
    """
    if share_type not in SHARE_TYPES:
        raise ValueError(f"share_type must be one of {SHARE_TYPES}, got {share_type!r}")

    if share_type == "ranked" and rank_list.ranked_ids is not None:
        texts = [item.text for item in rank_list.ranked_items()]
    else:
        texts = [item.text for item in rank_list.items + rank_list.unranked_items]

    return SharePayload(type=share_type, name=rank_list.name, items=texts)


def list_from_payload(payload: SharePayload) -> RankList:
    """Create a new list from a payload, with fresh identifiers."""
    items = [ListItem(id=generate_id(), text=text) for text in payload.items]
    rank_list = RankList(
        id=generate_id(),
        name=payload.name or "Untitled List",
        items=items,
        created_at=int(time.time() * 1000),
    )
    if payload.type == "ranked":
        rank_list.status = ListStatus.RANKED
        rank_list.ranked_ids = [item.id for item in items]
    return rank_list
