"""
Error kinds raised by the annotation geometry subsystem
"""
from typing import Optional


class InvalidDimensions(ValueError):
    """Zero, negative or non-finite image or viewport size"""


class CannotMigrate(ValueError):
    """No usable context could be established for a legacy payload"""


class MalformedAnnotation(ValueError):
    """
    A single annotation whose geometry cannot be interpreted

    Attributes:
        annotation_id: Id of the offending annotation (may be None if absent)
        kind: Annotation type ("line", "rect", ...)
        reason: Human-readable description
    """

    def __init__(self, annotation_id: Optional[str], kind: str, reason: str):
        self.annotation_id = annotation_id
        self.kind = kind
        self.reason = reason
        super().__init__(f"{kind} {annotation_id!r}: {reason}")
