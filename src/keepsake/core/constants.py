# src/keepsake/core/constants.py
"""Constants shared by the encoder, decoder, validator, and migration registry."""

# Structural generation the running code reads and writes
CURRENT_SCHEMA_VERSION = 1

# Documents written before schema versioning existed
LEGACY_SCHEMA_VERSION = 0

# Revision of the document envelope itself (meta.formatVersion)
FORMAT_VERSION = "1.0.0"

# Top-level document keys
ENTITY_RECORDS_KEY = "entityRecords"
META_KEY = "meta"

# Key of the identifier inside each entity record
ID_KEY = "id"

# Value markers: single-key objects standing in for non-native values
REF_MARKER = "$ref"
BIGINT_MARKER = "$bigint"
DATE_MARKER = "$date"

MARKERS = frozenset({REF_MARKER, BIGINT_MARKER, DATE_MARKER})

# Integers beyond this magnitude lose precision in IEEE-754 double based JSON
# readers and are written as $bigint markers.
MAX_SAFE_INT = 2**53 - 1

# Tag prefixed to checksums produced by the rolling hash
CHECKSUM_ALGORITHM = "simple"
