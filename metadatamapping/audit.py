# ==============================================
# Retire audit fields
# ==============================================

from datetime import datetime

from metadatamapping.exceptions import ValidationError
from metadatamapping.model import BaseMetadata


def stamp_retired(entity: BaseMetadata, reason: str, user: str) -> BaseMetadata:
    """
    Mark the entity retired and record who retired it, when and why.

    Raises:
        ValidationError: the reason is blank
    """
    if not reason or not reason.strip():
        raise ValidationError(f"A reason is required to retire {type(entity).__name__}")
    entity.retired = True
    entity.retire_reason = reason
    entity.retired_by = user
    entity.date_retired = datetime.now()
    return entity
