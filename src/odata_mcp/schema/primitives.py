"""
Primitive EDM type table.

Maps the primitive type names a metadata document may reference (``Edm.String``,
``Edm.Int32``, ...) onto the JSON types used in generated input contracts.
Anything not in this table is treated as a reference to a declared type.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PrimitiveType:
    """A primitive EDM type and its JSON rendering.

    Attributes:
        name: Qualified EDM name (e.g., 'Edm.Int32')
        json_type: JSON Schema type ('string', 'integer', 'number', 'boolean', 'object')
        family: Coarse family used for example values and descriptions
        json_format: Optional JSON Schema format hint (e.g., 'date-time', 'uuid')
    """
    name: str
    json_type: str
    family: str
    json_format: Optional[str] = None


_PRIMITIVES: tuple[PrimitiveType, ...] = (
    PrimitiveType('Edm.String', 'string', 'string'),
    PrimitiveType('Edm.Guid', 'string', 'string', 'uuid'),
    PrimitiveType('Edm.Boolean', 'boolean', 'boolean'),
    PrimitiveType('Edm.Byte', 'integer', 'integer'),
    PrimitiveType('Edm.SByte', 'integer', 'integer'),
    PrimitiveType('Edm.Int16', 'integer', 'integer'),
    PrimitiveType('Edm.Int32', 'integer', 'integer'),
    PrimitiveType('Edm.Int64', 'integer', 'integer'),
    PrimitiveType('Edm.Decimal', 'number', 'number'),
    PrimitiveType('Edm.Double', 'number', 'number'),
    PrimitiveType('Edm.Single', 'number', 'number'),
    PrimitiveType('Edm.Date', 'string', 'temporal', 'date'),
    PrimitiveType('Edm.DateTimeOffset', 'string', 'temporal', 'date-time'),
    PrimitiveType('Edm.DateTime', 'string', 'temporal', 'date-time'),  # CSDL v2/v3
    PrimitiveType('Edm.Time', 'string', 'temporal', 'duration'),  # CSDL v2/v3
    PrimitiveType('Edm.TimeOfDay', 'string', 'temporal', 'time'),
    PrimitiveType('Edm.Duration', 'string', 'temporal', 'duration'),
    PrimitiveType('Edm.Binary', 'string', 'binary', 'byte'),
    PrimitiveType('Edm.Stream', 'string', 'binary'),
    PrimitiveType('Edm.Geography', 'object', 'spatial'),
    PrimitiveType('Edm.GeographyPoint', 'object', 'spatial'),
    PrimitiveType('Edm.GeographyLineString', 'object', 'spatial'),
    PrimitiveType('Edm.GeographyPolygon', 'object', 'spatial'),
    PrimitiveType('Edm.GeographyMultiPoint', 'object', 'spatial'),
    PrimitiveType('Edm.GeographyMultiLineString', 'object', 'spatial'),
    PrimitiveType('Edm.GeographyMultiPolygon', 'object', 'spatial'),
    PrimitiveType('Edm.GeographyCollection', 'object', 'spatial'),
    PrimitiveType('Edm.Geometry', 'object', 'spatial'),
    PrimitiveType('Edm.GeometryPoint', 'object', 'spatial'),
    PrimitiveType('Edm.GeometryLineString', 'object', 'spatial'),
    PrimitiveType('Edm.GeometryPolygon', 'object', 'spatial'),
    PrimitiveType('Edm.GeometryMultiPoint', 'object', 'spatial'),
    PrimitiveType('Edm.GeometryMultiLineString', 'object', 'spatial'),
    PrimitiveType('Edm.GeometryMultiPolygon', 'object', 'spatial'),
    PrimitiveType('Edm.GeometryCollection', 'object', 'spatial'),
    PrimitiveType('Edm.Untyped', 'object', 'untyped'),
)

# Keyed by lowercase short name ("int32") so lookups ignore the Edm. prefix and case
_BY_SHORT_NAME: dict[str, PrimitiveType] = {
    p.name[len('Edm.'):].lower(): p for p in _PRIMITIVES
}

EDM_PREFIX = 'Edm.'


def lookup_primitive(type_name: Optional[str]) -> Optional[PrimitiveType]:
    """
    Look up a primitive type by name.

    Args:
        type_name: 'Edm.Int32', 'edm.int32' or bare 'Int32'

    Returns:
        The PrimitiveType, or None if the name is not a primitive

    Examples:
        >>> lookup_primitive('Edm.Int32').json_type
        'integer'
        >>> lookup_primitive('NorthwindModel.Product') is None
        True
    """
    if not type_name:
        return None
    short = type_name
    if short[:len(EDM_PREFIX)].lower() == EDM_PREFIX.lower():
        short = short[len(EDM_PREFIX):]
    return _BY_SHORT_NAME.get(short.lower())


def is_edm_qualified(type_name: str) -> bool:
    """Check whether a type name lives in the reserved Edm namespace."""
    return type_name[:len(EDM_PREFIX)].lower() == EDM_PREFIX.lower()


def is_binary(type_name: Optional[str]) -> bool:
    """Check whether a type name is a binary or stream primitive."""
    primitive = lookup_primitive(type_name)
    return primitive is not None and primitive.family == 'binary'
