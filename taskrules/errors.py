"""Ingestion error taxonomy."""

from __future__ import annotations


class IngestError(ValueError):
    """Base class for ingestion failures."""


class FormatUnsupported(IngestError):
    """Content does not match any supported encoding."""


class ContainerMalformed(IngestError):
    """The top-level container could not be parsed at all."""


class RecordInvalid(IngestError):
    """A single rule, task or person entry failed validation."""
