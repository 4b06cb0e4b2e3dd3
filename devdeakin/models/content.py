"""
Content models for DevDeakin

Articles, tutorials and questions are top-level Firestore collections;
answers, comments and ratings live in subcollections under their parent.
Field names on the wire and in Firestore are camelCase.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from devdeakin.models.tally import RatingTally, VoteTally, as_int


class ContentKind(str, Enum):
    """Top-level content collections"""

    ARTICLES = "articles"
    TUTORIALS = "tutorials"
    QUESTIONS = "questions"


RATED_KINDS = (ContentKind.ARTICLES, ContentKind.TUTORIALS)


class Visibility(str, Enum):
    DRAFT = "draft"
    PUBLIC = "public"


class QuestionStatus(str, Enum):
    OPEN = "open"
    ANSWERED = "answered"
    CLOSED = "closed"


class _Document(BaseModel):
    id: str
    author_uid: Optional[str] = Field(None, alias="authorUid")
    author_display: str = Field("Anonymous", alias="authorDisplay")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class RatedPost(_Document):
    """An article or a tutorial"""

    title: str = ""
    description: str = ""
    body: str = ""
    tags: list[str] = Field(default_factory=list)
    slug: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    rating: float = 0
    rating_count: int = Field(0, alias="ratingCount")
    rating_seed_count: int = Field(0, alias="ratingSeedCount")
    rating_user_count: int = Field(0, alias="ratingUserCount")
    views: int = 0
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class Question(_Document):
    title: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    visibility: Visibility = Visibility.PUBLIC
    status: QuestionStatus = QuestionStatus.OPEN
    views: int = 0
    seed: int = 0
    votes: int = 0
    has_voted: bool = Field(False, alias="hasVoted")
    answers_count: int = Field(0, alias="answersCount")
    last_activity_at: Optional[datetime] = Field(None, alias="lastActivityAt")


class Answer(_Document):
    content: str = ""
    seed: int = 0
    votes: int = 0
    has_voted: bool = Field(False, alias="hasVoted")
    is_accepted: bool = Field(False, alias="isAccepted")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class Comment(_Document):
    text: str = ""
    seed: int = 0
    upvotes: int = 0
    has_voted: bool = Field(False, alias="hasVoted")


def _base_fields(doc: Dict[str, Any], doc_id: str) -> Dict[str, Any]:
    return {
        "id": doc_id,
        "authorUid": doc.get("authorUid"),
        "authorDisplay": doc.get("authorDisplay") or "Anonymous",
        "createdAt": doc.get("createdAt"),
    }


def _visibility(doc: Dict[str, Any]) -> Visibility:
    return Visibility.DRAFT if doc.get("visibility") == Visibility.DRAFT.value else Visibility.PUBLIC


def visible_to(doc: Dict[str, Any], uid: Optional[str], admin: bool = False) -> bool:
    """Drafts are visible to their author and admins only"""
    if _visibility(doc) != Visibility.DRAFT:
        return True
    return admin or (uid is not None and uid == doc.get("authorUid"))


def _tags(doc: Dict[str, Any]) -> list[str]:
    tags = doc.get("tags") or []
    return [str(t) for t in tags] if isinstance(tags, list) else []


def firestore_post_to_model(doc: Dict[str, Any], doc_id: str) -> RatedPost:
    tally = RatingTally.from_document(doc)
    return RatedPost.model_validate({
        **_base_fields(doc, doc_id),
        "title": doc.get("title") or "",
        "description": doc.get("description") or "",
        "body": doc.get("body") or "",
        "tags": _tags(doc),
        "slug": doc.get("slug"),
        "visibility": _visibility(doc),
        "rating": tally.average,
        "ratingCount": tally.total_count,
        "ratingSeedCount": tally.seed_count,
        "ratingUserCount": tally.user_count,
        "views": as_int(doc.get("views")),
        "updatedAt": doc.get("updatedAt"),
    })


def firestore_question_to_model(
    doc: Dict[str, Any], doc_id: str, viewer_uid: Optional[str] = None
) -> Question:
    tally = VoteTally.from_document(doc)
    status = doc.get("status")
    return Question.model_validate({
        **_base_fields(doc, doc_id),
        "title": doc.get("title") or "",
        "description": doc.get("description") or "",
        "tags": _tags(doc),
        "visibility": _visibility(doc),
        "status": status if status in {s.value for s in QuestionStatus} else QuestionStatus.OPEN,
        "views": as_int(doc.get("views")),
        "seed": tally.seed,
        "votes": tally.total,
        "hasVoted": bool(viewer_uid) and tally.has_voted(viewer_uid),
        "answersCount": as_int(doc.get("answersCount")),
        "lastActivityAt": doc.get("lastActivityAt"),
    })


def firestore_answer_to_model(
    doc: Dict[str, Any], doc_id: str, viewer_uid: Optional[str] = None
) -> Answer:
    tally = VoteTally.from_document(doc)
    return Answer.model_validate({
        **_base_fields(doc, doc_id),
        "content": doc.get("content") or "",
        "seed": tally.seed,
        "votes": tally.total,
        "hasVoted": bool(viewer_uid) and tally.has_voted(viewer_uid),
        "isAccepted": bool(doc.get("isAccepted")),
        "updatedAt": doc.get("updatedAt"),
    })


def firestore_comment_to_model(
    doc: Dict[str, Any], doc_id: str, viewer_uid: Optional[str] = None
) -> Comment:
    tally = VoteTally.from_document(doc)
    return Comment.model_validate({
        **_base_fields(doc, doc_id),
        "text": doc.get("text") or "",
        "seed": tally.seed,
        "upvotes": tally.total,
        "hasVoted": bool(viewer_uid) and tally.has_voted(viewer_uid),
    })
