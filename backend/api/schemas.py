"""Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from backend.models.flashcard import BACK_MAX_LENGTH, FRONT_MAX_LENGTH, FlashcardSource
from backend.models.generation_error_log import ERROR_CODE_MAX_LENGTH
from backend.models.validators import SOURCE_TEXT_MAX_LENGTH, SOURCE_TEXT_MIN_LENGTH

# --- Generations ---


class GenerationCreateRequest(BaseModel):
    """Metadata of a completed generation run."""

    model: str = Field(min_length=1)
    generated_count: int = Field(ge=0)
    source_text_hash: str = Field(min_length=1)
    source_text_length: int = Field(ge=SOURCE_TEXT_MIN_LENGTH, le=SOURCE_TEXT_MAX_LENGTH)
    generation_duration: int = Field(ge=0)  # milliseconds
    accepted_unedited_count: int | None = Field(default=None, ge=0)
    accepted_edited_count: int | None = Field(default=None, ge=0)


class GenerationAcceptedCountsRequest(BaseModel):
    accepted_unedited_count: int | None = Field(default=None, ge=0)
    accepted_edited_count: int | None = Field(default=None, ge=0)


class GenerationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    model: str
    generated_count: int
    accepted_unedited_count: int | None
    accepted_edited_count: int | None
    source_text_hash: str
    source_text_length: int
    generation_duration: int
    created_at: datetime
    updated_at: datetime
    acceptance_rate: float | None


# --- Flashcards ---


class FlashcardCreate(BaseModel):
    front: str = Field(min_length=1, max_length=FRONT_MAX_LENGTH)
    back: str = Field(min_length=1, max_length=BACK_MAX_LENGTH)
    source: FlashcardSource = FlashcardSource.MANUAL


class FlashcardCreateRequest(BaseModel):
    """One or more cards, optionally linked to the generation that produced them."""

    flashcards: list[FlashcardCreate] = Field(min_length=1)
    generation_id: int | None = None


class FlashcardUpdateRequest(BaseModel):
    """Fields to change. ``updated_at`` is not accepted; the store assigns it."""

    front: str | None = Field(default=None, min_length=1, max_length=FRONT_MAX_LENGTH)
    back: str | None = Field(default=None, min_length=1, max_length=BACK_MAX_LENGTH)
    source: FlashcardSource | None = None


class FlashcardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    front: str
    back: str
    source: FlashcardSource
    generation_id: int | None
    created_at: datetime
    updated_at: datetime


# --- Generation error logs ---


class GenerationErrorLogCreateRequest(BaseModel):
    model: str = Field(min_length=1)
    source_text_hash: str = Field(min_length=1)
    source_text_length: int = Field(ge=SOURCE_TEXT_MIN_LENGTH, le=SOURCE_TEXT_MAX_LENGTH)
    error_code: str = Field(min_length=1, max_length=ERROR_CODE_MAX_LENGTH)
    error_message: str


class GenerationErrorLogUpdateRequest(BaseModel):
    error_code: str | None = Field(default=None, min_length=1, max_length=ERROR_CODE_MAX_LENGTH)
    error_message: str | None = None


class GenerationErrorLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    model: str
    source_text_hash: str
    source_text_length: int
    error_code: str
    error_message: str
    created_at: datetime
