"""
Column mapping between the canonical billboard schema and uploaded headers.

Matching runs in passes so the most specific evidence wins:
    1. normalized header == normalized label
    2. normalized header == normalized alias
    3. normalized header == normalized key
    4. substring containment (either direction) against label/key/aliases

Passes 1-3 run over every field before pass 4, and a header claimed by one
field is never offered to another. Substring matches need a minimum
normalized length and are assigned longest-term-first.
"""

from typing import Optional
import structlog

from config import settings
from exceptions import MissingRequiredColumnError, ValidationError
from models.bulk_upload import CanonicalFieldSpec
from utils.text_utils import normalize_for_matching

logger = structlog.get_logger(__name__)

ColumnMapping = dict[str, Optional[str]]


# ===================
# CANONICAL SCHEMA
# ===================

CANONICAL_FIELDS: list[CanonicalFieldSpec] = [
    CanonicalFieldSpec(
        key="frame_id",
        label="Frame_ID",
        required=False,
        aliases=("id", "frame", "clave", "codigo", "id pantalla", "id valla", "identificador", "sitio"),
        example_static="FR-1001",
        example_digital="FR-2001",
    ),
    CanonicalFieldSpec(
        key="venue_type",
        label="Tipo de Mueble",
        required=True,
        aliases=("tipo", "mueble", "tipo de venue", "venue", "venue type", "formato", "tipo de anuncio"),
        example_static="espectacular",
        example_digital="pantalla",
    ),
    CanonicalFieldSpec(
        key="address",
        label="Dirección",
        required=True,
        aliases=("direccion completa", "domicilio", "ubicacion", "calle", "address", "location"),
        example_static="Av. Reforma 123, Col. Centro",
        example_digital="Av. Insurgentes 456, Col. Roma",
    ),
    CanonicalFieldSpec(
        key="public_price",
        label="Precio Público",
        required=True,
        aliases=(
            "precio", "precio al publico", "precio mensual", "precio de lista",
            "tarifa", "tarifa mensual", "tarifa publicada", "renta mensual",
            "price", "public price", "monthly price", "list price", "rate card",
            "preco publico", "prix public",
        ),
        example_static="60000",
        example_digital="60000",
    ),
    CanonicalFieldSpec(
        key="latitude",
        label="Latitud",
        required=True,
        aliases=("lat", "latitude", "coordenada y"),
        example_static="19.432608",
        example_digital="19.421234",
    ),
    CanonicalFieldSpec(
        key="longitude",
        label="Longitud",
        required=True,
        aliases=("lng", "lon", "long", "longitude", "coordenada x"),
        example_static="-99.133209",
        example_digital="-99.162345",
    ),
    CanonicalFieldSpec(
        key="frame_category",
        label="Categoría",
        required=True,
        aliases=(
            "category", "frame category", "tipo de pantalla", "digital/estatico",
            "digital o estatico", "clasificacion", "tecnologia",
        ),
        example_static="static",
        example_digital="digital",
    ),
    CanonicalFieldSpec(
        key="width",
        label="Ancho (m)",
        required=True,
        aliases=("ancho", "ancho metros", "base", "width", "width m"),
        example_static="12",
        example_digital="8",
    ),
    CanonicalFieldSpec(
        key="height",
        label="Alto (m)",
        required=True,
        aliases=("alto", "alto metros", "altura", "height", "height m"),
        example_static="6",
        example_digital="4",
    ),
    CanonicalFieldSpec(
        key="city",
        label="Ciudad",
        aliases=("municipio", "city", "localidad", "plaza"),
        example_static="Ciudad de México",
        example_digital="Ciudad de México",
    ),
    CanonicalFieldSpec(
        key="state",
        label="Estado",
        aliases=("entidad", "state", "provincia", "departamento"),
        example_static="CDMX",
        example_digital="CDMX",
    ),
    CanonicalFieldSpec(
        key="status",
        label="Status",
        aliases=("estatus", "disponibilidad"),
        example_static="disponible",
        example_digital="disponible",
    ),
    CanonicalFieldSpec(
        key="illumination",
        label="Iluminación",
        aliases=("iluminado", "luz", "illumination", "lighting"),
        example_static="si",
        example_digital="no",
    ),
    CanonicalFieldSpec(
        key="monthly_impressions",
        label="Impactos Mensuales",
        aliases=("impactos", "impresiones", "impresiones mensuales", "audiencia", "impressions"),
        example_static="450000",
        example_digital="820000",
    ),
    CanonicalFieldSpec(
        key="photo_1",
        label="Foto 1",
        aliases=("foto", "fotografia 1", "imagen 1", "photo 1", "photo"),
        example_static="https://drive.google.com/file/d/1AbCdEfGhIjK/view?usp=sharing",
        example_digital="https://example.com/fotos/fr-2001.jpg",
    ),
    CanonicalFieldSpec(
        key="photo_2",
        label="Foto 2",
        aliases=("fotografia 2", "imagen 2", "photo 2"),
        example_static="",
        example_digital="",
    ),
    CanonicalFieldSpec(
        key="photo_3",
        label="Foto 3",
        aliases=("fotografia 3", "imagen 3", "photo 3"),
        example_static="",
        example_digital="",
    ),
]

FIELDS_BY_KEY: dict[str, CanonicalFieldSpec] = {f.key: f for f in CANONICAL_FIELDS}

PHOTO_FIELDS = ("photo_1", "photo_2", "photo_3")


def field_labels(fields: Optional[list[CanonicalFieldSpec]] = None) -> dict[str, str]:
    """Field key -> display label."""
    return {f.key: f.label for f in (fields or CANONICAL_FIELDS)}


# ===================
# MATCHING
# ===================

def suggest_mapping(
    headers: list[str],
    fields: Optional[list[CanonicalFieldSpec]] = None,
    min_length: Optional[int] = None,
) -> ColumnMapping:
    """
    Build the initial field -> header mapping.

    Args:
        headers: Cleaned headers in file order
        fields: Canonical schema (defaults to CANONICAL_FIELDS)
        min_length: Minimum normalized length for substring matches

    Returns:
        Mapping with every field key; unmatched fields map to None
    """
    fields = fields or CANONICAL_FIELDS
    if min_length is None:
        min_length = settings.column_match_min_length

    normalized_headers = [normalize_for_matching(h) for h in headers]
    mapping: ColumnMapping = {f.key: None for f in fields}
    claimed: set[int] = set()

    exact_passes = [
        ("label", lambda f: [f.label]),
        ("alias", lambda f: list(f.aliases)),
        ("key", lambda f: [f.key]),
    ]

    for pass_name, terms_of in exact_passes:
        for field_spec in fields:
            if mapping[field_spec.key] is not None:
                continue
            terms = {normalize_for_matching(t) for t in terms_of(field_spec)}
            terms.discard("")
            for index, normalized in enumerate(normalized_headers):
                if index in claimed or normalized not in terms:
                    continue
                mapping[field_spec.key] = headers[index]
                claimed.add(index)
                logger.debug("column_matched", field=field_spec.key, header=headers[index], match=pass_name)
                break

    # Substring pass: collect every candidate, then assign most specific first
    candidates = []
    for field_index, field_spec in enumerate(fields):
        if mapping[field_spec.key] is not None:
            continue
        terms = {
            normalize_for_matching(t)
            for t in [field_spec.label, field_spec.key, *field_spec.aliases]
        }
        terms = {t for t in terms if len(t) >= min_length}
        for index, normalized in enumerate(normalized_headers):
            if index in claimed or len(normalized) < min_length:
                continue
            score = max(
                (
                    min(len(term), len(normalized))
                    for term in terms
                    if term in normalized or normalized in term
                ),
                default=0,
            )
            if score:
                candidates.append((-score, field_index, index))

    for _, field_index, index in sorted(candidates):
        field_spec = fields[field_index]
        if mapping[field_spec.key] is not None or index in claimed:
            continue
        mapping[field_spec.key] = headers[index]
        claimed.add(index)
        logger.debug("column_matched", field=field_spec.key, header=headers[index], match="substring")

    logger.info(
        "column_mapping_suggested",
        mapped=sum(1 for v in mapping.values() if v),
        fields=len(fields),
        headers=len(headers),
    )
    return mapping


# ===================
# MAPPING EDITS & CHECKS
# ===================

def apply_mapping_overrides(
    mapping: ColumnMapping,
    overrides: dict[str, Optional[str]],
    headers: list[str],
    fields: Optional[list[CanonicalFieldSpec]] = None,
) -> ColumnMapping:
    """
    Return a new mapping with user overrides applied.

    None or "" clears a field.

    Raises:
        ValidationError: Unknown field key or header not in the file
    """
    fields = fields or CANONICAL_FIELDS
    known_keys = {f.key for f in fields}
    unknown_fields = [k for k in overrides if k not in known_keys]
    if unknown_fields:
        raise ValidationError(
            code="UNKNOWN_MAPPING_FIELD",
            message=f"Unknown fields: {', '.join(unknown_fields)}",
            details={"fields": unknown_fields, "valid": sorted(known_keys)},
        )

    header_set = set(headers)
    unknown_headers = [h for h in overrides.values() if h and h not in header_set]
    if unknown_headers:
        raise ValidationError(
            code="UNKNOWN_MAPPING_HEADER",
            message=f"Columns not found in file: {', '.join(unknown_headers)}",
            details={"headers": unknown_headers},
        )

    updated = dict(mapping)
    for key, header in overrides.items():
        updated[key] = header or None

    logger.info("column_mapping_updated", changed=sorted(overrides))
    return updated


def find_missing_required(
    mapping: ColumnMapping,
    fields: Optional[list[CanonicalFieldSpec]] = None,
) -> list[str]:
    """Required field keys with no mapped header, in schema order."""
    fields = fields or CANONICAL_FIELDS
    return [f.key for f in fields if f.required and not mapping.get(f.key)]


def require_complete_mapping(
    mapping: ColumnMapping,
    fields: Optional[list[CanonicalFieldSpec]] = None,
) -> None:
    """
    Halt when any required field is unmapped.

    Raises:
        MissingRequiredColumnError: Naming every unmapped required field
    """
    missing = find_missing_required(mapping, fields)
    if missing:
        logger.warning("required_columns_missing", missing=missing)
        raise MissingRequiredColumnError(missing, field_labels(fields))
