"""Dragonbane character sheet helpers used by the editor pages."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from .records import strip_identity_fields

# Skill name -> base attribute
SKILLS: dict[str, str] = {
    "Acrobatie": "agi",
    "Artisanat": "for",
    "Bluff": "cha",
    "Chasse et pêche": "agi",
    "Con. des bêtes": "int",
    "Dextérité": "agi",
    "Discrétion": "agi",
    "Équitation": "agi",
    "Esquive": "agi",
    "Intuition": "int",
    "Langues": "int",
    "Marchandage": "cha",
    "Mythes et légendes": "int",
    "Natation": "agi",
    "Navigation": "int",
    "Perception": "int",
    "Persuasion": "cha",
    "Représentation": "cha",
    "Soins": "int",
    "Survie": "int",
}

WEAPON_SKILLS: dict[str, str] = {
    "Arbalètes": "agi",
    "Arcs": "agi",
    "Bagarre": "for",
    "Bâtons": "agi",
    "Couteaux": "agi",
    "Épées": "for",
    "Frondes": "agi",
    "Haches": "for",
    "Lances": "for",
    "Marteaux": "for",
}

DEFAULT_NOTE_SECTION: dict[str, Any] = {
    "id": "general",
    "name": "Général",
    "notes": [],
    "customOrder": 0,
}


def _blank_weapon() -> dict[str, str]:
    return {"name": "", "grip": "", "range": "", "damage": "", "durability": "", "traits": ""}


def new_character_sheet() -> dict[str, Any]:
    """Payload for a freshly created, empty character sheet.

    Pass it to ``create`` together with the owner id; the sheet itself
    carries no identity fields.
    """
    return {
        "name": "",
        "player": "",
        "family": "",
        "age": "",
        "profession": "",
        "weakness": "",
        "appearance": "",
        "attributes": {"for": 10, "con": 10, "agi": 10, "int": 10, "vol": 10, "cha": 10},
        "conditions": {
            "exhausted": False,
            "sick": False,
            "stunned": False,
            "furious": False,
            "scared": False,
            "discouraged": False,
        },
        "damageBonus": {"for": "", "agi": ""},
        "movement": "",
        "encumbranceLimit": "",
        "abilities": [""] * 5,
        "skills": {skill: False for skill in SKILLS},
        "weaponSkills": {skill: False for skill in WEAPON_SKILLS},
        "secondarySkills": ["", ""],
        "inventory": [""] * 10,
        "souvenir": "",
        "tinyItems": "",
        "money": {"or": 0, "argent": 0, "cuivre": 0},
        "armor": {"name": "", "bane": ["ACROBATIE", "DISCRÉTION", "ESQUIVE"]},
        "helmet": {"name": "", "bane": ["ATTAQUES À DISTANCE", "INTUITION"]},
        "weapons": [_blank_weapon(), _blank_weapon()],
        "vitals": {
            "willpower": {"current": 18, "max": 18},
            "health": {"current": 18, "max": 18},
        },
        "deathRolls": {"successes": 0, "failures": 0},
        "rest": {"round": False, "period": False},
        "noteSections": [copy.deepcopy(DEFAULT_NOTE_SECTION)],
    }


def ensure_note_sections(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``record`` that has at least one note section.

    Sheets saved before notes existed have no ``noteSections`` key.
    """
    upgraded = dict(record)
    if not upgraded.get("noteSections"):
        upgraded["noteSections"] = [copy.deepcopy(DEFAULT_NOTE_SECTION)]
    return upgraded


def editable_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    """The part of a fetched record an editor may send back to ``update``."""
    return strip_identity_fields(record)
