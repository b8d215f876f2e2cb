# schemas/review.py

from typing import Dict, Optional
from pydantic import Field, field_validator

from .common import CamelModel


def _check_category_ratings(value):
    if value is None:
        return value
    for category, score in value.items():
        if not 1 <= score <= 5:
            raise ValueError(f"rating for '{category}' must be between 1 and 5")
    return value


class ReviewCreateRequest(CamelModel):
    ground_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    category_ratings: Dict[str, int] = Field(default_factory=dict)
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    content: str = Field(min_length=10, max_length=1000)

    @field_validator('category_ratings')
    @classmethod
    def check_category_ratings(cls, value):
        return _check_category_ratings(value)


class ReviewUpdateRequest(CamelModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    category_ratings: Optional[Dict[str, int]] = None
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    content: Optional[str] = Field(None, min_length=10, max_length=1000)

    @field_validator('category_ratings')
    @classmethod
    def check_category_ratings(cls, value):
        return _check_category_ratings(value)


class ReviewReportRequest(CamelModel):
    reason: str = Field(min_length=5, max_length=200)


class OwnerReplyRequest(CamelModel):
    content: str = Field(min_length=5, max_length=500)
    is_public: bool = True


class ReviewModerationRequest(CamelModel):
    status: str
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator('status')
    @classmethod
    def check_status(cls, value):
        if value not in ('published', 'hidden', 'flagged'):
            raise ValueError('status must be published, hidden or flagged')
        return value
