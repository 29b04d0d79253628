"""
Billboard inventory schemas.

An InventoryRecord is one physical advertising unit derived from one group
of uploaded rows. to_insert_payload() maps it onto the billboards table.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import Field, model_validator

from models.base import BaseSchema


class FrameCategory(str, Enum):
    """Billboard categories. Determines pricing formulas and contracting modes."""
    DIGITAL = "digital"
    STATIC = "static"


CATEGORY_LABELS = {
    FrameCategory.DIGITAL: "Digital",
    FrameCategory.STATIC: "Estático",
}

# Digital screen defaults (HD loop of 10-second spots, 6 per hour)
DIGITAL_RESOLUTION = "HD"
DIGITAL_SLOTS_PER_HOUR = 6
DIGITAL_SPOT_SECONDS = 10

CENT = Decimal("0.01")


def _money(value: Decimal) -> float:
    """Round to cents for storage; a positive rate never rounds down to zero."""
    rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if value > 0 and rounded < CENT:
        rounded = CENT
    return float(rounded)


# ===================
# PRICE TIERS
# ===================

class StaticPriceTiers(BaseSchema):
    """Printed (static) billboard: monthly, fourteen-day and weekly rates."""

    category: Literal["static"] = "static"
    monthly: Decimal = Field(..., gt=0, description="Published monthly rate")
    fourteen_day: Decimal = Field(..., gt=0, description="Catorcenal rate")
    weekly: Decimal = Field(..., gt=0, description="Weekly rate")

    def to_payload(self) -> dict:
        return {
            "mensual": _money(self.monthly),
            "catorcenal": _money(self.fourteen_day),
            "semanal": _money(self.weekly),
        }


class DigitalPriceTiers(BaseSchema):
    """Digital screen: monthly, weekly, daily and per-spot rates."""

    category: Literal["digital"] = "digital"
    monthly: Decimal = Field(..., gt=0, description="Published monthly rate")
    weekly: Decimal = Field(..., gt=0)
    daily: Decimal = Field(..., gt=0)
    spot: Decimal = Field(..., gt=0, description="Price of a single spot")
    spots_per_day: int = Field(..., ge=1)

    def to_payload(self) -> dict:
        return {
            "mensual": _money(self.monthly),
            "semana": _money(self.weekly),
            "dia": _money(self.daily),
            "spot": _money(self.spot),
        }


PriceTiers = Annotated[
    Union[StaticPriceTiers, DigitalPriceTiers],
    Field(discriminator="category"),
]


# ===================
# INVENTORY RECORD
# ===================

class InventoryRecord(BaseSchema):
    """
    Committable billboard derived from one FrameGroup.

    Field constraints repeat the validator's range checks so an invalid
    record can never be built, even by callers that skip validation.
    """

    owner_id: str = Field(..., min_length=1)
    identifier: str = Field(..., min_length=1, description="Uploader Frame_ID")
    name: str = Field(..., min_length=1, examples=["FR-1 - Digital"])
    address: str = Field(..., min_length=1)
    venue_type: str = Field(..., min_length=1, examples=["espectacular", "muro"])
    category: FrameCategory
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    width_m: Decimal = Field(..., gt=0)
    height_m: Decimal = Field(..., gt=0)
    price_tiers: PriceTiers
    contracting_modes: dict[str, bool]
    spots_disponibles: int = Field(..., ge=1)
    photos: list[str] = Field(default_factory=list)
    status: str = "disponible"
    city: Optional[str] = None
    state: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    source_row: int = Field(..., ge=2, description="Spreadsheet row of the group's first row")

    @model_validator(mode="after")
    def tiers_match_category(self) -> "InventoryRecord":
        """Price tiers must be the ones derived for this category."""
        if self.price_tiers.category != self.category.value:
            raise ValueError(
                f"{self.price_tiers.category} price tiers on a {self.category.value} billboard"
            )
        return self

    @property
    def monthly_price(self) -> Decimal:
        return self.price_tiers.monthly

    def to_insert_payload(self) -> dict:
        """Row for the billboards table."""
        digital = None
        if self.category == FrameCategory.DIGITAL:
            digital = {
                "resolucion": DIGITAL_RESOLUTION,
                "slots_por_hora": DIGITAL_SLOTS_PER_HOUR,
                "duracion_spot": DIGITAL_SPOT_SECONDS,
                "spots_por_dia": self.price_tiers.spots_per_day,
                "spots_disponibles": self.spots_disponibles,
            }

        return {
            "owner_id": self.owner_id,
            "nombre": self.name,
            "direccion": self.address,
            "tipo": self.venue_type,
            "lat": self.latitude,
            "lng": self.longitude,
            "medidas": {
                "ancho": float(self.width_m),
                "alto": float(self.height_m),
                "unidad": "metros",
            },
            "digital": digital,
            "contratacion": dict(self.contracting_modes),
            "precio": self.price_tiers.to_payload(),
            "fotos": list(self.photos),
            "status": self.status,
            "metadata": {
                **self.metadata,
                "frame_id": self.identifier,
                "frame_category": self.category.value,
                "spots_disponibles": self.spots_disponibles,
                "ciudad": self.city,
                "estado": self.state,
                "source_row": self.source_row,
            },
        }
