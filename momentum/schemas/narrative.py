from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class NarrativeAnalysis(BaseModel):
    """
    Validated Narrative Generator output.
    The model is not schema-guaranteed, so every field has a safe default and
    wrong-typed values are coerced rather than rejected.
    """
    confidence: Optional[int] = Field(None, description="0-100; None when omitted or unusable.")
    likelihood: Optional[int] = Field(None, description="0-100 completion likelihood, when asked for.")
    recommendations: List[str] = Field(default_factory=list)
    factors: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    malformed: bool = False

    @field_validator("confidence", "likelihood", mode="before")
    @classmethod
    def _clamp_score(cls, v: Any) -> Optional[int]:
        if isinstance(v, bool):
            return None
        if isinstance(v, str):
            try:
                v = float(v.strip().rstrip("%"))
            except ValueError:
                return None
        if not isinstance(v, (int, float)):
            return None
        return int(round(max(0.0, min(100.0, float(v)))))

    @field_validator("recommendations", "factors", "risks", "strengths", mode="before")
    @classmethod
    def _string_list(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            return [v] if v.strip() else []
        if not isinstance(v, list):
            return []
        return [str(item).strip() for item in v if isinstance(item, (str, int, float)) and str(item).strip()]
