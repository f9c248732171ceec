"""
docmigrate

Copies records from a table-oriented REST API (Supabase/PostgREST style)
into a schema-oriented document API (Appwrite style).

Supports:
- Destination schema inference from a sampled source record
- Best-effort attribute creation
- Per-record type coercion against the live destination schema
- Sequential, cancelable migration with per-record and per-table failure isolation
- Structured event log and progress reporting (CLI and HTTP API)
"""

__version__ = "0.1.0"
