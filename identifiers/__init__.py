"""
Identifiers package.

Public API:
- IdType, ParsedId
- generate_id, generate_batch, generate_readable_id
- parse_id, validate_id, parse_creation_date, is_id_recent
"""
from .generator import (
    IdType,
    ParsedId,
    generate_id,
    generate_batch,
    generate_readable_id,
    parse_id,
    validate_id,
    parse_creation_date,
    is_id_recent,
)

__all__ = [
    "IdType",
    "ParsedId",
    "generate_id",
    "generate_batch",
    "generate_readable_id",
    "parse_id",
    "validate_id",
    "parse_creation_date",
    "is_id_recent",
]
