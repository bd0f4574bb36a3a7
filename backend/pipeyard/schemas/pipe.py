"""
Pipeyard Backend - Pydantic Request/Response Schemas
=====================================================

What:  The API contract for pipe records.
How:   PipePayload validates a POST body without changing it: known fields
       must be scalars (or null), unknown fields pass through, and only the
       fields the client actually sent are handed to the store.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

# Strict members keep the client's JSON types as sent ("12" stays a string)
Scalar = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PipePayload(BaseModel):
    """
    A full or partial pipe record as sent by the form.

    Every field is optional. A missing or falsy `id` means "create"; a
    truthy one means "update that pipe". Units follow the form labels.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[Scalar] = Field(default=None, description="Pipe id; omit or 0 to create")
    description: Optional[Scalar] = Field(default=None, description="Free text description")
    diameter: Optional[Scalar] = Field(default=None, description="Outer diameter, mm")
    material: Optional[Scalar] = Field(default=None, description="e.g. 'Carbon Steel', 'PVC'")
    length: Optional[Scalar] = Field(default=None, description="Section length, m")
    pressureRating: Optional[Scalar] = Field(default=None, description="Max internal pressure, PSI")
    schedule: Optional[Scalar] = Field(default=None, description="Wall schedule, e.g. 'SCH 40'")
    materialGrade: Optional[Scalar] = Field(default=None, description="e.g. 'A106-B', '316L'")
    tensileStrength: Optional[Scalar] = Field(default=None, description="Ultimate tensile strength, MPa")
    yieldStrength: Optional[Scalar] = Field(default=None, description="Yield strength, MPa")
    hardness: Optional[Scalar] = Field(default=None, description="e.g. '150 HB'")
    ringCrushStrength: Optional[Scalar] = Field(default=None, description="Ring crush strength, kN/m")
    coating: Optional[Scalar] = Field(default=None, description="e.g. 'FBE', 'Galvanized'")
    insulationThickness: Optional[Scalar] = Field(default=None, description="Insulation thickness, mm")
    corrosionLevel: Optional[Scalar] = Field(default=None, description="Corrosion level")
    isJacketed: Optional[Scalar] = Field(default=None, description="Jacketed pipe")
    isFlanged: Optional[Scalar] = Field(default=None, description="Flanged ends")

    def to_record(self) -> Dict[str, Any]:
        """Only the fields the client sent, extras included."""
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for every locally produced error.

    Example:
        {
            "error": "not_found",
            "message": "Pipe with id 99 not found.",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
