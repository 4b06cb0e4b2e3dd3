"""
Content service: articles, tutorials, questions and their answers/comments
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from firebase_admin import firestore

from devdeakin.exceptions import TargetNotFoundError
from devdeakin.models.content import (
    Answer,
    Comment,
    ContentKind,
    Question,
    QuestionStatus,
    RatedPost,
    Visibility,
    firestore_answer_to_model,
    firestore_comment_to_model,
    firestore_post_to_model,
    firestore_question_to_model,
    visible_to,
)
from devdeakin.models.tally import RatingTally, VoteTally, as_int
from devdeakin.models.user import CurrentUser
from devdeakin.schemas.content import (
    AnswerCreateSchema,
    CommentCreateSchema,
    QuestionCreateSchema,
    RatedPostCreateSchema,
)
from devdeakin.services.firebase_service import firebase_service
from devdeakin.utils.search import matches, query_tokens, slugify, tokenize

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "description", "body")
# Public documents read per collection for one search
SEARCH_FETCH_LIMIT = 120

SUBCOLLECTIONS = {
    ContentKind.ARTICLES: ("comments", "ratings"),
    ContentKind.TUTORIALS: ("comments", "ratings"),
    ContentKind.QUESTIONS: ("answers",),
}

SEEDED_COMMENT_AUTHOR = "Admin"


def _created_at_key(item) -> datetime:
    return item.created_at or datetime.min.replace(tzinfo=timezone.utc)


def _in_date_range(
    created_at: Optional[datetime], start: Optional[datetime], end: Optional[datetime]
) -> bool:
    if start is None and end is None:
        return True
    if created_at is None:
        return False
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if start is not None and created_at < start:
        return False
    if end is not None and created_at > end:
        return False
    return True


class ContentService:
    # ============================================
    # CREATE
    # ============================================

    async def create_post(
        self, kind: ContentKind, payload: RatedPostCreateSchema, user: CurrentUser
    ) -> RatedPost:
        """
        Create an article or tutorial.

        Admins may also seed the rating partition and attach seeded comments;
        the post and its comments are written in one batch.
        """
        now = datetime.now(timezone.utc)
        tally = RatingTally()
        if user.admin and payload.seed_count is not None and payload.seed_average is not None:
            tally = tally.with_seed(payload.seed_average, payload.seed_count)

        data: Dict[str, Any] = {
            "title": payload.title,
            "description": payload.description.strip(),
            "body": payload.body,
            "tags": payload.tags,
            "slug": slugify(payload.title),
            "visibility": payload.visibility.value,
            "authorUid": user.uid,
            "authorDisplay": self._author_display(user, payload.author_display),
            **tally.to_update(),
            "views": 0,
            "title_lc": payload.title.lower(),
            "searchTokens": tokenize(
                " ".join([payload.title, payload.description, " ".join(payload.tags)])
            ),
            "createdAt": now,
            "updatedAt": now,
        }

        comments = []
        if user.admin:
            fallback = (payload.author_display or "").strip() or SEEDED_COMMENT_AUTHOR
            for seed in payload.seed_comments:
                comments.append({
                    "authorUid": user.uid,
                    "authorDisplay": (seed.author_display or "").strip() or fallback,
                    "text": seed.text.strip(),
                    **VoteTally(seed=seed.seed).to_update("upvotes"),
                    "createdAt": now,
                })

        def _write(batch) -> str:
            post_ref = firebase_service.collection(kind.value).document()
            batch.set(post_ref, data)
            comments_col = post_ref.collection("comments")
            for comment in comments:
                batch.set(comments_col.document(), comment)
            return post_ref.id

        doc_id = await firebase_service.run_batch(_write)
        logger.info(
            "Created %s %s by %s with %d seeded comments", kind.value, doc_id, user.uid, len(comments)
        )
        return firestore_post_to_model(data, doc_id)

    async def create_question(self, payload: QuestionCreateSchema, user: CurrentUser) -> Question:
        """
        Create a question; admins may seed votes, views, status and answers.

        At most one seeded answer is accepted, and an accepted one marks the
        question as answered.
        """
        now = datetime.now(timezone.utc)
        status = QuestionStatus.OPEN
        views = 0
        tally = VoteTally()
        if user.admin:
            status = payload.status or QuestionStatus.OPEN
            views = payload.views or 0
            tally = tally.with_seed(payload.seed or 0)

        author_display = self._author_display(user, payload.author_display)
        answers = []
        if user.admin:
            accepted_placed = False
            for seed in payload.seed_answers:
                is_accepted = seed.is_accepted and not accepted_placed
                accepted_placed = accepted_placed or is_accepted
                answers.append({
                    "content": seed.content.strip(),
                    "authorUid": user.uid,
                    "authorDisplay": (seed.author_display or "").strip() or author_display,
                    "createdAt": now,
                    "updatedAt": now,
                    **VoteTally(seed=seed.seed).to_update("votes"),
                    "isAccepted": is_accepted,
                })
            if accepted_placed:
                status = QuestionStatus.ANSWERED

        data: Dict[str, Any] = {
            "title": payload.title,
            "description": payload.description.strip(),
            "tags": payload.tags,
            "visibility": payload.visibility.value,
            "status": status.value,
            "authorUid": user.uid,
            "authorDisplay": author_display,
            "views": views,
            **tally.to_update("votes"),
            "answersCount": len(answers),
            "title_lc": payload.title.lower(),
            "searchTokens": tokenize(
                " ".join([payload.title, payload.description, " ".join(payload.tags)])
            ),
            "createdAt": now,
            "lastActivityAt": now,
        }

        def _write(batch) -> str:
            question_ref = firebase_service.collection(ContentKind.QUESTIONS.value).document()
            batch.set(question_ref, data)
            answers_col = question_ref.collection("answers")
            for answer in answers:
                batch.set(answers_col.document(), answer)
            return question_ref.id

        doc_id = await firebase_service.run_batch(_write)
        logger.info("Created question %s by %s with %d seeded answers", doc_id, user.uid, len(answers))
        return firestore_question_to_model(data, doc_id, user.uid)

    async def add_answer(
        self, question_id: str, payload: AnswerCreateSchema, user: CurrentUser
    ) -> Answer:
        question_path = (ContentKind.QUESTIONS.value, question_id)
        await self.get_visible_document(ContentKind.QUESTIONS, question_id, user)

        now = datetime.now(timezone.utc)
        data: Dict[str, Any] = {
            "content": payload.content,
            "authorUid": user.uid,
            "authorDisplay": user.display_name or user.email or user.phone_number or "anonymous",
            "createdAt": now,
            "updatedAt": now,
            **VoteTally().to_update("votes"),
            "isAccepted": False,
        }
        answer_id = await firebase_service.add_document((*question_path, "answers"), data)
        await firebase_service.update_document(
            question_path,
            {"answersCount": firestore.Increment(1), "lastActivityAt": now},
        )
        return firestore_answer_to_model(data, answer_id, user.uid)

    async def add_comment(
        self, kind: ContentKind, post_id: str, payload: CommentCreateSchema, user: CurrentUser
    ) -> Comment:
        await self.get_visible_document(kind, post_id, user)

        author_display = user.author_display
        seed = 0
        if user.admin:
            if payload.author_display and payload.author_display.strip():
                author_display = payload.author_display.strip()
            seed = payload.seed or 0

        data: Dict[str, Any] = {
            "authorUid": user.uid,
            "authorDisplay": author_display,
            "text": payload.text,
            **VoteTally(seed=seed).to_update("upvotes"),
            "createdAt": datetime.now(timezone.utc),
        }
        comment_id = await firebase_service.add_document((kind.value, post_id, "comments"), data)
        return firestore_comment_to_model(data, comment_id, user.uid)

    # ============================================
    # DELETE
    # ============================================

    async def delete_comment(self, kind: ContentKind, post_id: str, comment_id: str) -> None:
        path = (kind.value, post_id, "comments", comment_id)
        if await firebase_service.get_document(*path) is None:
            raise TargetNotFoundError("/".join(path))
        await firebase_service.delete_document(*path)
        logger.info("Deleted comment %s", "/".join(path))

    async def delete_content(self, kind: ContentKind, doc_id: str) -> None:
        """Delete a post or question together with its subcollections"""
        if await firebase_service.get_document(kind.value, doc_id) is None:
            raise TargetNotFoundError(f"{kind.value}/{doc_id}")

        for name in SUBCOLLECTIONS[kind]:
            deleted = await firebase_service.delete_collection(kind.value, doc_id, name)
            logger.info("Deleted %d docs from %s/%s/%s", deleted, kind.value, doc_id, name)
        await firebase_service.delete_document(kind.value, doc_id)
        logger.info("Deleted %s %s", kind.value, doc_id)

    # ============================================
    # READ
    # ============================================

    async def get_visible_document(
        self, kind: ContentKind, doc_id: str, viewer: Optional[CurrentUser] = None
    ) -> Dict[str, Any]:
        """
        Fetch a top-level document the viewer is allowed to see.

        Raises:
            TargetNotFoundError: missing, or a draft of someone else's
        """
        data = await firebase_service.get_document(kind.value, doc_id)
        uid = viewer.uid if viewer else None
        if data is None or not visible_to(data, uid, bool(viewer and viewer.admin)):
            raise TargetNotFoundError(f"{kind.value}/{doc_id}")
        return data

    async def get_post(
        self, kind: ContentKind, post_id: str, viewer: Optional[CurrentUser] = None
    ) -> RatedPost:
        data = await self.get_visible_document(kind, post_id, viewer)
        return firestore_post_to_model(data, post_id)

    async def get_question(
        self, question_id: str, viewer: Optional[CurrentUser] = None
    ) -> Question:
        data = await self.get_visible_document(ContentKind.QUESTIONS, question_id, viewer)
        return firestore_question_to_model(data, question_id, viewer.uid if viewer else None)

    async def list_answers(self, question_id: str, viewer_uid: Optional[str] = None) -> List[Answer]:
        """Accepted answers first, then by votes (ties keep creation order)"""
        rows = await firebase_service.list_collection(
            ContentKind.QUESTIONS.value, question_id, "answers"
        )
        answers = sorted(
            (firestore_answer_to_model(data, doc_id, viewer_uid) for doc_id, data in rows),
            key=_created_at_key,
        )
        return sorted(answers, key=lambda a: (not a.is_accepted, -a.votes))

    async def list_comments(
        self, kind: ContentKind, post_id: str, viewer_uid: Optional[str] = None
    ) -> List[Comment]:
        rows = await firebase_service.list_collection(kind.value, post_id, "comments")
        comments = [firestore_comment_to_model(data, doc_id, viewer_uid) for doc_id, data in rows]
        return sorted(comments, key=_created_at_key)

    async def get_my_rating(self, kind: ContentKind, post_id: str, uid: str) -> Optional[int]:
        data = await firebase_service.get_document(kind.value, post_id, "ratings", uid)
        if not data:
            return None
        return as_int(data.get("value")) or None

    async def record_view(
        self, kind: ContentKind, doc_id: str, viewer: Optional[CurrentUser] = None
    ) -> None:
        await self.get_visible_document(kind, doc_id, viewer)
        await firebase_service.increment_field((kind.value, doc_id), "views")

    # ============================================
    # SEARCH
    # ============================================

    async def search(
        self,
        q: str,
        kinds: Iterable[ContentKind],
        limit: int = 20,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Dict[ContentKind, list]:
        """
        Public documents of each kind whose search tokens match ``q``

        ``date_from``/``date_to`` are inclusive UTC days on ``createdAt``;
        documents without a creation time are dropped once either is given.
        """
        tokens = query_tokens(q)
        start = datetime.combine(date_from, time.min, tzinfo=timezone.utc) if date_from else None
        end = datetime.combine(date_to, time.max, tzinfo=timezone.utc) if date_to else None

        results: Dict[ContentKind, list] = {}
        for kind in kinds:
            rows = await firebase_service.list_collection(
                kind.value,
                filters={"visibility": Visibility.PUBLIC.value},
                limit=SEARCH_FETCH_LIMIT,
            )
            hits: List[Tuple[str, Dict[str, Any]]] = [
                (doc_id, data) for doc_id, data in rows if matches(data, tokens, SEARCH_FIELDS)
            ]
            if kind == ContentKind.QUESTIONS:
                models = [firestore_question_to_model(d, i) for i, d in hits]
            else:
                models = [firestore_post_to_model(d, i) for i, d in hits]
            models = [m for m in models if _in_date_range(m.created_at, start, end)]
            results[kind] = sorted(models, key=_created_at_key, reverse=True)[:limit]
        return results

    @staticmethod
    def _author_display(user: CurrentUser, override: Optional[str]) -> str:
        if user.admin and override and override.strip():
            return override.strip()
        return user.author_display


content_service = ContentService()
