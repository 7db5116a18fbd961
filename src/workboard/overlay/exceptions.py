"""Custom exceptions for the metadata overlay."""


class MetadataError(Exception):
    """Base exception for metadata overlay errors."""


class ParentCycleError(MetadataError):
    """Assigning this parent would make a task its own ancestor."""


class UnknownSectionError(MetadataError):
    """The named card section does not exist."""
