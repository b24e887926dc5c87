# media_matching/reporter_matching/contact_resolver.py
from __future__ import annotations

import logging
import re
import unicodedata
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ContactNotFound
from .models import ContactInfo

logger = logging.getLogger(__name__)

_QUOTES_RE = re.compile(r"[\"'`‘’“”]")
_DISALLOWED_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(name: Optional[str]) -> str:
    """
    Build the lookup key for a reporter name.

    "José  O'Brien-Smith" -> "jose-obrien-smith"

    Lowercases, strips accents, drops quotes and punctuation (hyphens are
    kept) and turns every whitespace run into a single hyphen. The output
    only contains [a-z0-9-], so normalize_name(normalize_name(x)) is
    normalize_name(x).
    """
    if not name:
        return ""

    decomposed = unicodedata.normalize("NFKD", name)
    text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    text = text.lower()
    text = _QUOTES_RE.sub("", text)
    text = _DISALLOWED_RE.sub("", text)
    text = text.strip()
    return _WHITESPACE_RE.sub("-", text)


class ContactDirectory:
    """
    Static reporter contact directory keyed by normalized name.

    Stands behind the ContactResolver contract so it can be swapped for a real
    CRM without touching the aggregation code.
    """

    def __init__(self, contacts: Mapping[str, Mapping[str, Any]]) -> None:
        self._contacts: Dict[str, ContactInfo] = {}
        for raw_key, entry in contacts.items():
            contact = ContactInfo.model_validate(entry)
            key = normalize_name(raw_key)
            if key in self._contacts:
                logger.warning("Duplicate contact key '%s'; keeping the last entry.", key)
            self._contacts[key] = contact

        logger.debug("ContactDirectory loaded with %d entries.", len(self._contacts))

    @classmethod
    def from_yaml(cls, path: Path) -> "ContactDirectory":
        """
        Load the directory from a YAML file shaped as:

            contacts:
              nick-robins-early:
                name: Nick Robins-Early
                email: ...
        """
        if not path.exists():
            logger.error("Contacts file not found: %s", path)
            raise FileNotFoundError(f"Contacts file not found: {path}")

        logger.info("Loading reporter contacts from: %s", path)
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        contacts = raw.get("contacts", {}) or {}
        if not isinstance(contacts, dict):
            raise ValueError(f"'contacts' in {path} must be a mapping.")
        return cls(contacts)

    def __len__(self) -> int:
        return len(self._contacts)

    def resolve(self, name: str) -> Optional[ContactInfo]:
        key = normalize_name(name)
        contact = self._contacts.get(key)
        if contact is None:
            logger.debug("No contact info found for '%s' (key=%s)", name, key)
        return contact

    def require(self, name: str) -> ContactInfo:
        """Like resolve(), but raises ContactNotFound with the tried key."""
        contact = self.resolve(name)
        if contact is None:
            raise ContactNotFound(name, normalize_name(name))
        return contact

    def search(self, query: str) -> List[ContactInfo]:
        """Partial match against both the stored key and the contact's own name."""
        needle = normalize_name(query)
        if not needle:
            return []

        return [
            contact
            for key, contact in self._contacts.items()
            if needle in key or needle in normalize_name(contact.name)
        ]

    def all(self) -> List[ContactInfo]:
        return list(self._contacts.values())
