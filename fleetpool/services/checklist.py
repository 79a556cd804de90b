# fleetpool/services/checklist.py
"""
Fixed catalogues of onboard equipment and fuel levels.
Checklist presence is recorded per movement; items left unchecked at checkin
become the vehicle's missing_checklist and are pre-unticked on the next checkout.
"""

from typing import Optional

CHECKLIST_ITEMS = [
    ("libretto", "Libretto Circolazione"),
    ("assicurazione", "Certificato Assicurazione"),
    ("card", "Carta Carburante"),
    ("telepass", "Dispositivo Telepass"),
    ("manuale", "Manuale Uso e Manutenzione"),
    ("giubbino", "Giubbino Catarifrangente"),
    ("triangolo", "Triangolo"),
]
CHECKLIST_IDS = [item_id for item_id, _ in CHECKLIST_ITEMS]

FUEL_LEVELS = ["Riserva", "1/4", "1/2", "3/4", "Pieno"]


def normalize_checklist(submitted: Optional[dict]) -> dict:
    """Catalogue-ordered map of item id -> present. Items not submitted count as absent."""
    submitted = submitted or {}
    return {item_id: bool(submitted.get(item_id, False)) for item_id in CHECKLIST_IDS}


def missing_items(checklist: dict) -> list[str]:
    return [item_id for item_id, present in normalize_checklist(checklist).items() if not present]


def checklist_defaults(missing: Optional[list]) -> dict:
    """Checkout form pre-fill: everything ticked except what was missing at last checkin."""
    missing = set(missing or [])
    return {item_id: item_id not in missing for item_id in CHECKLIST_IDS}
