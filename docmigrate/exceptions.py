"""Exceptions raised by the migration engine."""

from typing import Optional


class MigrationError(Exception):
    """Base class for all migration failures."""

    def __init__(self, msg=None, *args, **kwargs):
        if msg is None:
            msg = ""
        Exception.__init__(self, msg, *args, **kwargs)


class ValidationError(MigrationError):
    """Credentials or mappings are incomplete. Fatal to the run."""


class MigrationInProgressError(MigrationError):
    """A run was started while another one is still migrating."""


class SourceFetchError(MigrationError):
    """Reading a source table failed. Fatal to that mapping only."""

    def __init__(self, msg=None, table: str = "", status: Optional[str] = None):
        MigrationError.__init__(self, msg)
        self.table = table
        self.status = status


class SchemaFetchError(MigrationError):
    """The destination collection schema could not be read."""

    def __init__(self, msg=None, collection_id: str = ""):
        MigrationError.__init__(self, msg)
        self.collection_id = collection_id


class AttributeCreateError(MigrationError):
    """One attribute-creation call failed. Fatal to that attribute only."""

    def __init__(self, msg=None, key: str = ""):
        MigrationError.__init__(self, msg)
        self.key = key


class DocumentWriteError(MigrationError):
    """One document create call failed. Fatal to that record only."""

    def __init__(self, msg=None, document_id: Optional[str] = None):
        MigrationError.__init__(self, msg)
        self.document_id = document_id
