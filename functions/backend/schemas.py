"""
Pydantic schemas for the FastAPI backend. Wire names are camelCase.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Required fields are checked by facts.queries so that a missing value is
# reported as a 400 with the same message on every surface.


class SaveTokenPayload(BaseModel):
    token: Optional[str] = None
    category: Optional[str] = None


class SaveFavoritePayload(CamelModel):
    token: Optional[str] = None
    fact_id: Optional[str] = Field(default=None, alias="factId")
    fact: Optional[str] = None
    explanation: Optional[str] = None
    category: Optional[str] = None


class RemoveFavoritePayload(CamelModel):
    token: Optional[str] = None
    fact_id: Optional[str] = Field(default=None, alias="factId")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class FactsPageResponse(CamelModel):
    facts: list[dict]
    next_cursor: Optional[int] = Field(default=None, alias="nextCursor")


class FavoritesPageResponse(CamelModel):
    items: list[dict]
    next_cursor: Optional[int] = Field(default=None, alias="nextCursor")


class SharedFavoritesResponse(CamelModel):
    favorites: list[dict]
    next_cursor: Optional[int] = Field(default=None, alias="nextCursor")
