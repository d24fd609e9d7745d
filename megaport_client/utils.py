"""Small lookup and validation helpers shared by the services."""

from __future__ import annotations

import random
import re

_GUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")

MIN_VLAN = 1
MAX_VLAN = 4094


def fuzzy_match(source: str, target: str) -> bool:
    """Return True when every character of ``source`` appears in ``target`` in order."""
    remaining = iter(target)
    return all(character in remaining for character in source)


def is_guid(value: str) -> bool:
    return _GUID_PATTERN.match(value) is not None


def is_email(value: str) -> bool:
    return _EMAIL_PATTERN.match(value) is not None


def generate_random_vlan(rng: random.Random | None = None) -> int:
    source = rng or random
    return source.randint(MIN_VLAN, MAX_VLAN)
