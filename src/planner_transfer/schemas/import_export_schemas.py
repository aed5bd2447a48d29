"""Pydantic schemas for import/export operations.

This module defines the dry-run analysis report produced before an import and
the response payloads of the transfer endpoints.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ImportAnalysis(BaseModel):
    """Report describing the structure of a candidate import document.

    Produced without touching the store, so callers can show the user what an
    import is going to do before it clears any table.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    valid: bool = Field(False, description="Document parsed as a JSON object")
    top_level_keys: List[str] = Field(default_factory=list, description="Keys of the root object")
    format: str = Field("unknown", description="Detected source format tag")
    has_tasks_data: bool = Field(False, description="A key looks like it holds tasks")
    needs_conversion: bool = Field(True, description="Document is not in the canonical bundle shape")
    conversion_hints: List[str] = Field(default_factory=list, description="Human-readable notes")


class ImportResponse(BaseModel):
    """Response for a completed import."""
    success: bool = Field(..., description="Import completed without a fatal error")

    model_config = {
        "json_schema_extra": {
            "example": {"success": True}
        }
    }


class ResetResponse(BaseModel):
    """Response for a full data reset."""
    message: str = Field(..., description="Descriptive message about the reset")
