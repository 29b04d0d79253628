"""
Duplicate identifier detection against the owner's existing inventory.

Records are named "{identifier} - {category label}", so an upload
identifier is a duplicate when an existing name contains it
(case-insensitive). That containment check also flags "FR-1" against an
existing "FR-10 - Digital"; match_mode="exact" compares against the
identifier prefix of each name instead.
"""

from typing import Optional, Protocol
import structlog

from config import settings
from exceptions import DuplicateIdentifierError
from models.billboard import InventoryRecord

logger = structlog.get_logger(__name__)

NAME_SEPARATOR = " - "
MATCH_MODES = ("contains", "exact")


class BillboardStore(Protocol):
    """Persistence collaborator consumed by the upload pipeline."""

    def insert(self, record: InventoryRecord) -> str: ...

    def query_existing_names(self, owner_id: str) -> list[str]: ...


def match_duplicate_identifiers(
    identifiers: list[str],
    existing_names: list[str],
    match_mode: str = "contains",
) -> list[str]:
    """
    Identifiers that collide with an existing record name.

    Args:
        identifiers: Upload identifiers (order preserved in the result)
        existing_names: Names already stored for the owner
        match_mode: "contains" (substring) or "exact" (identifier prefix)

    Returns:
        Duplicate identifiers, each listed once
    """
    if match_mode not in MATCH_MODES:
        raise ValueError(f"match_mode must be one of {MATCH_MODES}")

    folded_names = [name.casefold() for name in existing_names if name]
    if match_mode == "exact":
        prefixes = {name.split(NAME_SEPARATOR, 1)[0].strip() for name in folded_names}

    duplicates = []
    for identifier in dict.fromkeys(identifiers):
        needle = identifier.strip().casefold()
        if not needle:
            continue
        if match_mode == "exact":
            hit = needle in prefixes
        else:
            hit = any(needle in name for name in folded_names)
        if hit:
            duplicates.append(identifier)
    return duplicates


class DuplicateDetectionService:
    """Flags upload identifiers already present in the owner's inventory."""

    def __init__(self, store: BillboardStore, match_mode: Optional[str] = None):
        self.store = store
        self.match_mode = match_mode or settings.duplicate_match_mode

    def find_duplicates(self, owner_id: str, identifiers: list[str]) -> list[str]:
        """
        Query the owner's existing names and return colliding identifiers.

        Raises:
            DatabaseError: If the lookup fails
        """
        if not identifiers:
            return []

        existing_names = self.store.query_existing_names(owner_id)
        duplicates = match_duplicate_identifiers(identifiers, existing_names, self.match_mode)

        if duplicates:
            logger.warning(
                "duplicate_identifiers_found",
                owner_id=owner_id,
                count=len(duplicates),
                sample=duplicates[:10],
                match_mode=self.match_mode,
            )
        else:
            logger.info(
                "no_duplicate_identifiers",
                owner_id=owner_id,
                checked=len(identifiers),
                existing=len(existing_names),
            )
        return duplicates

    def ensure_no_duplicates(self, owner_id: str, identifiers: list[str]) -> None:
        """
        Raises:
            DuplicateIdentifierError: If any identifier already exists
        """
        duplicates = self.find_duplicates(owner_id, identifiers)
        if duplicates:
            raise DuplicateIdentifierError(duplicates, owner_id)
