"""PharmaField: field-sales administration for pharmaceutical representatives."""

__version__ = "0.1.0"
