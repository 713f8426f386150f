"""
Human-facing complaint ids: ``CMP-<STORE>-<000001>``.

Each store code has its own counter, so numbering restarts per store.
"""

import re
from typing import Dict, Mapping, Optional

from servicedesk.repositories.counter_repository import CounterRepository

STORE_CODE_MAP: Dict[str, str] = {
    "Magarpatta": "MAG",
    "Kharadi": "KHA",
    "Viman Nagar": "VMN",
    "Wagholi": "WAG",
    "Koregaon Park": "KRP",
    "MG Road": "MGR",
    "Salunkhe Vihar": "SLV",
    "JM Road": "JMR",
    "Aundh": "AUN",
    "Pimple Saudagar": "PMS",
    "Balewadi": "BLW",
    "Chinchwad": "CHN",
    "Ravet": "RAV",
    "Wakad": "WAK",
    "Happiness Street": "HPS",
    "Kothrud": "KOT",
    "Sinhgad Road": "SNR",
    "Hinjewadi": "HNJ",
    "Undri": "UND",
    "Dhanori": "DHN",
    "Warje": "WRJ",
    "Bibwewadi": "BBW",
    "Bavdhan": "BVD",
}

SEQUENCE_WIDTH = 6


def fallback_store_code(store_name: Optional[str]) -> str:
    """First three letters of the first word, padded with X; ``OTH`` when blank."""
    cleaned = re.sub(r"\s+", " ", (store_name or "").strip())
    if not cleaned:
        return "OTH"

    first_token = cleaned.split(" ")[0]
    code = re.sub(r"[^A-Za-z]", "", first_token)[:3].upper()
    return (code + "XXX")[:3]


def store_code_for(store_name: Optional[str], overrides: Optional[Mapping[str, str]] = None) -> str:
    cleaned = (store_name or "").strip()
    if overrides and cleaned in overrides:
        return overrides[cleaned]
    return STORE_CODE_MAP.get(cleaned) or fallback_store_code(cleaned)


class ComplaintIdGenerator:
    """Allocates the next id for a store from the counters table."""

    def __init__(self, counters: CounterRepository, overrides: Optional[Mapping[str, str]] = None):
        self.counters = counters
        self.overrides = dict(overrides or {})

    def next_id(self, store_name: Optional[str]) -> str:
        code = store_code_for(store_name, self.overrides)
        seq = self.counters.next_value(f"complaint:{code}")
        return f"CMP-{code}-{seq:0{SEQUENCE_WIDTH}d}"
