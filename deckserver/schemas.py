from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class DeckFile(BaseModel):
    name: str
    size: int
    date: str


class DeckList(BaseModel):
    decks: List[DeckFile]


class DeckStartResponse(BaseModel):
    deckpid: str
    deck: str
    duration: str


class DeckStopResponse(BaseModel):
    stop: str


class MediaResponse(BaseModel):
    deckpid: str
    media: str


class RemoveResponse(BaseModel):
    remove: str


class UploadResponse(BaseModel):
    upload: str


class TableResponse(BaseModel):
    table: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
    running: bool
    deckpid: Optional[str] = None
