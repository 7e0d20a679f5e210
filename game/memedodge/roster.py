"""
EntityRoster - the fixed, ordered list of coins that missiles are made from.

The roster is loaded once at startup from the pre-fetched feed (a JSON array
of records sorted by ascending 24h change) and is read-only afterwards.
Malformed records are repaired with neutral defaults instead of rejected so
the tick loop never has to handle a bad entry.
"""

from __future__ import annotations

import json
import math
import os
import random
from collections.abc import Sequence
from typing import Any, Dict, Iterable, List, Optional

from .entities import Coin

LOGO_URL = "https://s2.coinmarketcap.com/static/img/coins/64x64/{id}.png"

PLACEHOLDER_COIN = Coin(id="placeholder", name="UNKNOWN", symbol="???", percent_change=0.0)


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(f) or math.isinf(f):
        return default
    return f


def coin_from_record(record: Dict[str, Any], index: int = 0) -> Coin:
    """Build a Coin from a feed record, substituting defaults for missing fields.

    Accepts both the feed spelling (``percentChange24h``, ``logo``) and the
    short spelling (``percentChange``, ``logoRef``). Derived stats in the
    record are ignored and recomputed from the percent change.
    """
    if not isinstance(record, dict):
        record = {}

    pct = record.get("percentChange24h", record.get("percentChange"))
    rank = record.get("rank")
    return Coin(
        id=record.get("id", f"coin-{index}"),
        name=str(record.get("name") or "UNKNOWN"),
        symbol=str(record.get("symbol") or "???"),
        percent_change=_as_float(pct),
        logo_ref=record.get("logo", record.get("logoRef")),
        slug=record.get("slug"),
        price=_as_float(record.get("price")),
        market_cap=_as_float(record.get("marketCap")),
        rank=int(rank) if isinstance(rank, (int, float)) else None,
    )


def coin_to_record(coin: Coin) -> Dict[str, Any]:
    return {
        "id": coin.id,
        "name": coin.name,
        "symbol": coin.symbol,
        "slug": coin.slug,
        "percentChange24h": coin.percent_change,
        "price": coin.price,
        "marketCap": coin.market_cap,
        "rank": coin.rank,
        "logo": coin.logo_ref,
        "fallSpeed": coin.fall_speed,
        "size": coin.size,
        "damage": coin.damage,
    }


def enrich_market_records(quotes: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Turn raw market quotes into feed records.

    Keeps only coins that are down over 24h, attaches the game stats and
    sorts by largest drop first.
    """
    enriched = []
    for quote in quotes:
        usd = ((quote or {}).get("quote") or {}).get("USD") or {}
        pct = _as_float(usd.get("percent_change_24h"))
        if pct >= 0:
            continue
        magnitude = abs(pct)
        enriched.append({
            "id": quote.get("id"),
            "name": quote.get("name"),
            "symbol": quote.get("symbol"),
            "slug": quote.get("slug"),
            "percentChange24h": pct,
            "price": _as_float(usd.get("price")),
            "marketCap": _as_float(usd.get("market_cap")),
            "rank": quote.get("cmc_rank"),
            "logo": LOGO_URL.format(id=quote.get("id")),
            "fallSpeed": min(magnitude / 5, 10),
            "size": min(magnitude / 10 + 0.5, 3),
            "damage": min(magnitude / 5, 20),
        })

    enriched.sort(key=lambda r: r["percentChange24h"])
    return enriched


class EntityRoster(Sequence):
    """Immutable ordered collection of coins"""

    def __init__(self, coins: Iterable[Coin], verbose: int = 0):
        self._coins = tuple(coins)
        if not self._coins:
            if verbose > 0:
                print("[EntityRoster] empty roster, using placeholder coin")
            self._coins = (PLACEHOLDER_COIN,)

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]], verbose: int = 0) -> "EntityRoster":
        coins = [coin_from_record(r, i) for i, r in enumerate(records or [])]
        return cls(coins, verbose=verbose)

    @classmethod
    def load(cls, path: str, verbose: int = 0) -> "EntityRoster":
        """Load the feed JSON written by the ingestion step"""
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            records = []
        roster = cls.from_records(records, verbose=verbose)
        if verbose > 0:
            print(f"[EntityRoster] Loaded {len(roster)} coins from {path}")
        return roster

    def to_json(self, path: str) -> str:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([coin_to_record(c) for c in self._coins], f, indent=2)
        return path

    def pick(self, rng: Optional[random.Random] = None) -> Coin:
        """Uniformly random entry"""
        rng = rng or random
        return self._coins[int(rng.random() * len(self._coins))]

    def __getitem__(self, idx):
        return self._coins[idx]

    def __len__(self) -> int:
        return len(self._coins)

    def __repr__(self) -> str:
        return f"EntityRoster({len(self._coins)} coins)"


# Small offline feed used when no snapshot file is available (demo play, RL training)
SAMPLE_FEED = [
    {"id": 1001, "name": "Rugpull Inu", "symbol": "RUG", "percentChange24h": -47.3},
    {"id": 1002, "name": "Moonless", "symbol": "MOON", "percentChange24h": -33.8},
    {"id": 1003, "name": "Copium", "symbol": "COPE", "percentChange24h": -24.1},
    {"id": 1004, "name": "Bagholder", "symbol": "BAG", "percentChange24h": -18.6},
    {"id": 1005, "name": "Paper Hands", "symbol": "PAPR", "percentChange24h": -12.7},
    {"id": 1006, "name": "Wen Lambo", "symbol": "WEN", "percentChange24h": -9.4},
    {"id": 1007, "name": "Dip Buyer", "symbol": "DIP", "percentChange24h": -6.2},
    {"id": 1008, "name": "Sideways", "symbol": "FLAT", "percentChange24h": -2.5},
]


def sample_roster(verbose: int = 0) -> EntityRoster:
    return EntityRoster.from_records(SAMPLE_FEED, verbose=verbose)
