"""Data models for Namecheap API payloads.

Only the TLD catalog gets a typed model: the cache sorts and filters on
its fields.  Everything else the client returns is a plain JSON-ready
dict produced by :mod:`namecheap_mcp.namecheap.parsing`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse Namecheap's ``"true"``/``"false"`` attribute strings."""
    if value is None:
        return default
    return value.strip().lower() in ("true", "yes", "1", "ok", "enabled")


def parse_int(value: Optional[str], default: int = 0) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def popularity_from_rank(sequence_number: int) -> float:
    """Turn Namecheap's display rank (1 = most prominent) into a score.

    Higher is more popular; unranked TLDs score ``0.0``.
    """
    if sequence_number <= 0:
        return 0.0
    return 1.0 / sequence_number


@dataclass(frozen=True)
class TldRecord:
    """One entry of the Namecheap TLD catalog."""

    name: str
    registerable: bool = False
    popularity: float = 0.0
    description: str = ""
    type: str = ""
    category: str = ""
    min_register_years: int = 0
    max_register_years: int = 0
    renewable: bool = False
    transferable: bool = False
    supports_idn: bool = False
    categories: Tuple[str, ...] = ()

    @classmethod
    def from_attrs(
        cls,
        attrs: Mapping[str, str],
        *,
        description: str = "",
        categories: Optional[Sequence[str]] = None,
    ) -> TldRecord:
        """Construct from the attributes of a ``<Tld>`` element (tolerant of missing keys)."""
        return cls(
            name=(attrs.get("Name") or "").strip().lower(),
            registerable=parse_bool(attrs.get("IsApiRegisterable")),
            popularity=popularity_from_rank(parse_int(attrs.get("SequenceNumber"))),
            description=description.strip(),
            type=attrs.get("Type", ""),
            category=attrs.get("Category", ""),
            min_register_years=parse_int(attrs.get("MinRegisterYears")),
            max_register_years=parse_int(attrs.get("MaxRegisterYears")),
            renewable=parse_bool(attrs.get("IsApiRenewable")),
            transferable=parse_bool(attrs.get("IsApiTransferable")),
            supports_idn=parse_bool(attrs.get("IsSupportsIDN")),
            categories=tuple(categories or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "registerable": self.registerable,
            "popularity": self.popularity,
            "description": self.description,
            "type": self.type,
            "category": self.category,
            "minRegisterYears": self.min_register_years,
            "maxRegisterYears": self.max_register_years,
            "renewable": self.renewable,
            "transferable": self.transferable,
            "supportsIdn": self.supports_idn,
            "categories": list(self.categories),
        }
