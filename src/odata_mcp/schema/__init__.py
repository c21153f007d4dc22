"""OData CSDL schema model and metadata parser."""

from .model import (
    ComplexType,
    EntityContainer,
    EntitySet,
    EntityType,
    EnumType,
    NavigationProperty,
    Operation,
    OperationImport,
    Parameter,
    Property,
    SchemaModel,
    Singleton,
    TypeKind,
)
from .parser import MetadataParser, parse_file, parse_metadata
from .primitives import PrimitiveType, lookup_primitive

__all__ = [
    'ComplexType',
    'EntityContainer',
    'EntitySet',
    'EntityType',
    'EnumType',
    'NavigationProperty',
    'Operation',
    'OperationImport',
    'Parameter',
    'Property',
    'SchemaModel',
    'Singleton',
    'TypeKind',
    'MetadataParser',
    'parse_file',
    'parse_metadata',
    'PrimitiveType',
    'lookup_primitive',
]
