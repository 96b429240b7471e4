# This project was developed with assistance from AI tools.
"""Shared schema components."""

from pydantic import BaseModel, Field


class ReasonRequest(BaseModel):
    """Body of hold / resume / cancel requests."""

    reason: str = Field(min_length=1, max_length=2000)
