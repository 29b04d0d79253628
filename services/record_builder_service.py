"""
Builds InventoryRecords from validated groups.
"""

from typing import Optional
import structlog

from models.billboard import CATEGORY_LABELS, InventoryRecord
from services.column_mapping_service import PHOTO_FIELDS, ColumnMapping
from services.pricing_service import contracting_modes, derive_price_tiers
from services.validation_service import ValidatedGroup
from utils.number_utils import parse_number
from utils.text_utils import clean_text, normalize_for_matching
from utils.url_utils import normalize_photo_url

logger = structlog.get_logger(__name__)

DEFAULT_STATUS = "disponible"

# Normalized owner status -> stored status
STATUS_ALIASES = {
    "disponible": "disponible",
    "available": "disponible",
    "libre": "disponible",
    "ocupado": "ocupado",
    "ocupada": "ocupado",
    "occupied": "ocupado",
    "reservado": "reservado",
    "reserved": "reservado",
    "mantenimiento": "mantenimiento",
    "maintenance": "mantenimiento",
}

YES_VALUES = {"si", "yes", "true", "1", "x"}


def record_name(validated: ValidatedGroup) -> str:
    """
    "{identifier} - {category label}", e.g. "FR-1 - Digital".

    Rows without an identifier column are named after their address.
    """
    label = CATEGORY_LABELS[validated.category]
    if validated.group.synthetic:
        return f"{validated.address[:80]} - {label}"
    return f"{validated.identifier} - {label}"


def build_record(
    validated: ValidatedGroup,
    mapping: ColumnMapping,
    owner_id: str,
    spots_per_day: Optional[int] = None,
) -> InventoryRecord:
    """
    Transform one validated group into a committable record.

    Price tiers are derived from the published rate; every row in the group
    counts as one available spot.
    """
    group = validated.group

    def text(key: str) -> Optional[str]:
        return clean_text(group.value(mapping.get(key)))

    photos = []
    for key in PHOTO_FIELDS:
        url = normalize_photo_url(group.value(mapping.get(key)))
        if url and url not in photos:
            photos.append(url)

    status = STATUS_ALIASES.get(normalize_for_matching(text("status") or ""), DEFAULT_STATUS)

    metadata = {"bulk_upload": True}
    illumination = text("illumination")
    if illumination is not None:
        metadata["iluminacion"] = normalize_for_matching(illumination) in YES_VALUES
    impressions = parse_number(group.value(mapping.get("monthly_impressions")))
    if impressions is not None and impressions >= 0:
        metadata["impactos_mensuales"] = int(impressions)

    return InventoryRecord(
        owner_id=owner_id,
        identifier=group.identifier,
        name=record_name(validated),
        address=validated.address,
        venue_type=validated.venue_type,
        category=validated.category,
        latitude=float(validated.latitude),
        longitude=float(validated.longitude),
        width_m=validated.width,
        height_m=validated.height,
        price_tiers=derive_price_tiers(validated.category, validated.monthly_rate, spots_per_day),
        contracting_modes=contracting_modes(validated.category),
        spots_disponibles=group.spots_disponibles,
        photos=photos,
        status=status,
        city=text("city"),
        state=text("state"),
        metadata=metadata,
        source_row=group.source_row,
    )


def build_records(
    validated_groups: list[ValidatedGroup],
    mapping: ColumnMapping,
    owner_id: str,
    spots_per_day: Optional[int] = None,
) -> list[InventoryRecord]:
    """Build records for groups in order."""
    records = [
        build_record(v, mapping, owner_id, spots_per_day)
        for v in validated_groups
    ]
    logger.debug("records_built", count=len(records))
    return records
