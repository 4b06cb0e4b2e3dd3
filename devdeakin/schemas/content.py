"""
Content, vote and rating request/response schemas
"""

import re
from typing import Optional, Union

from pydantic import BaseModel, Field, ConfigDict, field_validator

from devdeakin.models.content import (
    Answer,
    Comment,
    Question,
    QuestionStatus,
    RatedPost,
    Visibility,
)

MAX_POST_TAGS = 3
MAX_QUESTION_TAGS = 3
MAX_SEED_ANSWERS = 20
MAX_SEED_COMMENTS = 100
MAX_COMMENT_SEED = 1_000_000


def _parse_tags(value: Union[str, list, None], limit: int, lower: bool = False) -> list[str]:
    """Accepts "a, b, c" or ["a", "b"]; blanks dropped, first ``limit`` kept"""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else value
    tags = [str(t).strip() for t in items if str(t).strip()]
    if lower:
        tags = [t.lower() for t in tags]
    return tags[:limit]


def _leading_int(text: str) -> int:
    match = re.match(r"\s*(-?\d+)", text)
    return max(0, int(match.group(1))) if match else 0


def parse_seed_answers(raw: str) -> list[dict]:
    """
    Parse the one-per-line seed answer format::

        Use flexbox || author=Sam || votes=3 || accepted

    ``votes`` becomes the answer's seed. Lines of dashes are separators.
    """
    answers = []
    for line in raw.splitlines():
        line = line.strip()
        if not line or set(line) == {"-"}:
            continue
        content, *flags = [p.strip() for p in line.split("||")]
        answer = {"content": content, "authorDisplay": None, "seed": 0, "isAccepted": False}
        for flag in flags:
            key, _, value = flag.partition("=")
            key = key.strip().lower()
            if key == "author":
                answer["authorDisplay"] = value.strip() or None
            elif key == "votes":
                answer["seed"] = _leading_int(value)
            elif key == "accepted" and not value:
                answer["isAccepted"] = True
        if len(content) >= 2:
            answers.append(answer)
    return answers


def parse_seed_comments(raw: str) -> list[dict]:
    """Parse ``Author|text|upvotes`` lines; author and upvotes are optional"""
    comments = []
    for line in raw.splitlines():
        parts = [p.strip() for p in line.strip().split("|")]
        if len(parts) == 1:
            author, text = "", parts[0]
        else:
            author, text = parts[0], parts[1]
        if not text:
            continue
        comments.append({
            "authorDisplay": author or None,
            "text": text,
            "seed": _leading_int(parts[2]) if len(parts) >= 3 else 0,
        })
    return comments


class SeedAnswerSchema(BaseModel):
    content: str = Field(..., min_length=2, max_length=10000)
    author_display: Optional[str] = Field(None, alias="authorDisplay", max_length=100)
    seed: int = Field(0, ge=0, le=MAX_COMMENT_SEED)
    is_accepted: bool = Field(False, alias="isAccepted")

    model_config = ConfigDict(populate_by_name=True)


class SeedCommentSchema(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
    author_display: Optional[str] = Field(None, alias="authorDisplay", max_length=100)
    seed: int = Field(0, ge=0, le=MAX_COMMENT_SEED)

    model_config = ConfigDict(populate_by_name=True)


class RatedPostCreateSchema(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field("", max_length=2000)
    body: str = Field("", description="Post body (markdown/HTML)")
    tags: list[str] = Field(default_factory=list)
    visibility: Visibility = Visibility.PUBLIC

    # Admin-only fields; ignored for other callers
    author_display: Optional[str] = Field(None, alias="authorDisplay", max_length=100)
    seed_average: Optional[float] = Field(None, alias="seedAverage", ge=0, le=5)
    seed_count: Optional[int] = Field(None, alias="seedCount", ge=0)
    seed_comments: list[SeedCommentSchema] = Field(default_factory=list, alias="seedComments")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Intro to React hooks",
                "description": "useState and useEffect in practice",
                "body": "...",
                "tags": "react, hooks",
                "visibility": "public",
            }
        },
    )

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return _parse_tags(v, MAX_POST_TAGS)

    @field_validator("seed_comments", mode="before")
    @classmethod
    def parse_comments(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = parse_seed_comments(v)
        return v[:MAX_SEED_COMMENTS] if isinstance(v, list) else v

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v


class QuestionCreateSchema(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field("", max_length=10000)
    tags: list[str] = Field(default_factory=list)
    visibility: Visibility = Visibility.PUBLIC

    # Admin-only fields; ignored for other callers
    author_display: Optional[str] = Field(None, alias="authorDisplay", max_length=100)
    status: Optional[QuestionStatus] = None
    views: Optional[int] = Field(None, ge=0)
    seed: Optional[int] = Field(None, ge=0)
    seed_answers: list[SeedAnswerSchema] = Field(default_factory=list, alias="seedAnswers")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        return _parse_tags(v, MAX_QUESTION_TAGS, lower=True)

    @field_validator("seed_answers", mode="before")
    @classmethod
    def parse_answers(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = parse_seed_answers(v)
        return v[:MAX_SEED_ANSWERS] if isinstance(v, list) else v

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v


class AnswerCreateSchema(BaseModel):
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Answer cannot be empty")
        return v


class CommentCreateSchema(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)
    # Admin-only
    author_display: Optional[str] = Field(None, alias="authorDisplay", max_length=100)
    seed: Optional[int] = Field(None, ge=0, le=MAX_COMMENT_SEED)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class SeedUpdateSchema(BaseModel):
    seed: int = Field(..., ge=0, le=MAX_COMMENT_SEED)


class RatingSeedSchema(BaseModel):
    average: float = Field(..., ge=0, le=5)
    count: int = Field(..., ge=0)


class RateSchema(BaseModel):
    value: int = Field(..., ge=1, le=5)


class VoteResponse(BaseModel):
    total: int
    seed: int
    voters_count: int = Field(..., alias="votersCount")
    has_voted: Optional[bool] = Field(None, alias="hasVoted")

    model_config = ConfigDict(populate_by_name=True)


class RatingResponse(BaseModel):
    rating: float
    rating_count: int = Field(..., alias="ratingCount")
    rating_sum: int = Field(..., alias="ratingSum")
    seed_sum: int = Field(..., alias="ratingSeedSum")
    seed_count: int = Field(..., alias="ratingSeedCount")
    user_sum: int = Field(..., alias="ratingUserSum")
    user_count: int = Field(..., alias="ratingUserCount")
    my_rating: Optional[int] = Field(None, alias="myRating")

    model_config = ConfigDict(populate_by_name=True)


class SearchResponse(BaseModel):
    query: str
    articles: list[RatedPost] = Field(default_factory=list)
    tutorials: list[RatedPost] = Field(default_factory=list)
    questions: list[Question] = Field(default_factory=list)


class QuestionDetailResponse(BaseModel):
    question: Question
    answers: list[Answer] = Field(default_factory=list)


class PostDetailResponse(BaseModel):
    post: RatedPost
    comments: list[Comment] = Field(default_factory=list)
    my_rating: Optional[int] = Field(None, alias="myRating")

    model_config = ConfigDict(populate_by_name=True)
