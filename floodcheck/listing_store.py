"""
Listing key-value store

JSON file holding, per listing id, the listing's address and a free-text
note. Stands in for the browser-side storage the listing page writes to.
"""

import json
import os
import threading
from typing import Any, Dict, Optional

from loguru import logger


NOTE_BADGES: Dict[str, str] = {
    "Too Expensive": "💰",
    "Flood Zone": "🌊",
    "Bad Area": "🚫",
    "Bad Zoning": "🏗️",
    "Attached": "📎",
    "Shared Drive": "🚗",
}
DEFAULT_BADGE = "📝"


def note_badge(note: str) -> str:
    """Badge text for a note: the note followed by its emoji"""
    return f"{note} {NOTE_BADGES.get(note, DEFAULT_BADGE)}"


def planning_map_address(address: str) -> str:
    """
    Format a listing address for the council planning map search box.

    "12 Beach Road, Mission Bay, Auckland City, Auckland"
    -> "12 BEACH ROAD MISSION BAY"
    """
    parts = address.split(", ")
    if len(parts) < 3:
        return address
    return " ".join(parts[:-2]).replace(",", "").upper()


class ListingStore:
    """Listing id -> {"address": ..., "note": ...}, persisted to a JSON file"""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load listing store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Dict[str, Any]]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _entry(self, data: Dict[str, Any], listing_id: str) -> Dict[str, Any]:
        """Entry for a listing; older stores kept the bare note string"""
        entry = data.get(str(listing_id))
        if entry is None or isinstance(entry, dict):
            return entry or {}
        if isinstance(entry, str):
            return {"note": entry}
        logger.warning(f"Ignoring malformed entry for listing {listing_id} in {self.path}: {entry!r}")
        return {}

    def _get(self, listing_id: str, key: str) -> Optional[str]:
        with self._lock:
            value = self._entry(self._load(), listing_id).get(key)
        return value or None

    def _set(self, listing_id: str, key: str, value: Optional[str]):
        with self._lock:
            data = self._load()
            entry = dict(self._entry(data, listing_id))
            data[str(listing_id)] = entry
            if value is None:
                entry.pop(key, None)
                if not entry:
                    data.pop(str(listing_id))
            else:
                entry[key] = value
            self._save(data)

    def get_address(self, listing_id: str) -> Optional[str]:
        return self._get(listing_id, "address")

    def set_address(self, listing_id: str, address: str):
        self._set(listing_id, "address", address)
        logger.debug(f"Stored address for listing {listing_id}")

    def get_note(self, listing_id: str) -> Optional[str]:
        return self._get(listing_id, "note")

    def set_note(self, listing_id: str, note: str):
        self._set(listing_id, "note", note)

    def delete_note(self, listing_id: str):
        self._set(listing_id, "note", None)
