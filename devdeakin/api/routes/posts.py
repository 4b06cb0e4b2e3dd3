"""
Articles and tutorials

Both collections share the same shape (rated posts with comments), so one
router is built per collection.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from devdeakin.dependencies import get_current_user, get_optional_user, require_admin
from devdeakin.exceptions import TargetNotFoundError
from devdeakin.models.content import ContentKind, Comment, RatedPost
from devdeakin.models.tally import RatingTally, VoteTally
from devdeakin.models.user import CurrentUser
from devdeakin.schemas.content import (
    CommentCreateSchema,
    PostDetailResponse,
    RateSchema,
    RatedPostCreateSchema,
    RatingResponse,
    RatingSeedSchema,
    SeedUpdateSchema,
    VoteResponse,
)
from devdeakin.services.content_service import content_service
from devdeakin.services.firebase_service import firebase_service
from devdeakin.services.rating_service import rating_service
from devdeakin.services.voting_service import voting_service, UPVOTES_FIELD


def _not_found(e: TargetNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _rating_response(tally: RatingTally, my_rating: Optional[int] = None) -> RatingResponse:
    return RatingResponse(
        rating=tally.average,
        ratingCount=tally.total_count,
        ratingSum=tally.total_sum,
        ratingSeedSum=tally.seed_sum,
        ratingSeedCount=tally.seed_count,
        ratingUserSum=tally.user_sum,
        ratingUserCount=tally.user_count,
        myRating=my_rating,
    )


def _vote_response(tally: VoteTally, has_voted: Optional[bool] = None) -> VoteResponse:
    return VoteResponse(
        total=tally.total, seed=tally.seed, votersCount=len(tally.voters), hasVoted=has_voted
    )


def build_router(kind: ContentKind) -> APIRouter:
    router = APIRouter(prefix=f"/api/v1/{kind.value}", tags=[kind.value.title()])

    def post_ref(post_id: str):
        return firebase_service.document(kind.value, post_id)

    def comment_ref(post_id: str, comment_id: str):
        return firebase_service.document(kind.value, post_id, "comments", comment_id)

    @router.post("/", response_model=RatedPost, status_code=status.HTTP_201_CREATED)
    async def create_post(
        payload: RatedPostCreateSchema, current_user: CurrentUser = Depends(get_current_user)
    ):
        return await content_service.create_post(kind, payload, current_user)

    @router.get("/{post_id}", response_model=PostDetailResponse)
    async def get_post(
        post_id: str, current_user: Optional[CurrentUser] = Depends(get_optional_user)
    ):
        """Post with its comments; drafts are visible to their author and admins only"""
        try:
            post = await content_service.get_post(kind, post_id, current_user)
        except TargetNotFoundError as e:
            raise _not_found(e)

        viewer_uid = current_user.uid if current_user else None
        comments = await content_service.list_comments(kind, post_id, viewer_uid)
        my_rating = (
            await content_service.get_my_rating(kind, post_id, viewer_uid) if viewer_uid else None
        )
        return PostDetailResponse(post=post, comments=comments, myRating=my_rating)

    @router.post("/{post_id}/views", status_code=status.HTTP_204_NO_CONTENT)
    async def record_view(
        post_id: str, current_user: Optional[CurrentUser] = Depends(get_optional_user)
    ):
        try:
            await content_service.record_view(kind, post_id, current_user)
        except TargetNotFoundError as e:
            raise _not_found(e)

    @router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_post(post_id: str, admin: CurrentUser = Depends(require_admin)):
        """Delete the post with its comments and ratings"""
        try:
            await content_service.delete_content(kind, post_id)
        except TargetNotFoundError as e:
            raise _not_found(e)

    # ----- ratings -----

    @router.put("/{post_id}/rating", response_model=RatingResponse)
    async def rate(
        post_id: str, payload: RateSchema, current_user: CurrentUser = Depends(get_current_user)
    ):
        """Set (or replace) the caller's 1-5 star rating"""
        try:
            await content_service.get_visible_document(kind, post_id, current_user)
            tally = await rating_service.rate(post_ref(post_id), current_user.uid, payload.value)
        except TargetNotFoundError as e:
            raise _not_found(e)
        return _rating_response(tally, payload.value)

    @router.put("/{post_id}/rating-seed", response_model=RatingResponse)
    async def apply_rating_seed(
        post_id: str, payload: RatingSeedSchema, admin: CurrentUser = Depends(require_admin)
    ):
        try:
            tally = await rating_service.apply_seed(post_ref(post_id), payload.average, payload.count)
        except TargetNotFoundError as e:
            raise _not_found(e)
        return _rating_response(tally)

    @router.delete("/{post_id}/rating-seed", response_model=RatingResponse)
    async def reset_rating_seed(post_id: str, admin: CurrentUser = Depends(require_admin)):
        """Zero the seed partition, keeping user ratings"""
        try:
            tally = await rating_service.reset_seed(post_ref(post_id))
        except TargetNotFoundError as e:
            raise _not_found(e)
        return _rating_response(tally)

    @router.delete("/{post_id}/ratings", response_model=RatingResponse)
    async def reset_user_ratings(post_id: str, admin: CurrentUser = Depends(require_admin)):
        """Delete every account rating; totals fall back to the seed"""
        try:
            tally = await rating_service.reset_user_ratings(post_ref(post_id))
        except TargetNotFoundError as e:
            raise _not_found(e)
        return _rating_response(tally)

    # ----- comments -----

    @router.post(
        "/{post_id}/comments", response_model=Comment, status_code=status.HTTP_201_CREATED
    )
    async def add_comment(
        post_id: str,
        payload: CommentCreateSchema,
        current_user: CurrentUser = Depends(get_current_user),
    ):
        try:
            return await content_service.add_comment(kind, post_id, payload, current_user)
        except TargetNotFoundError as e:
            raise _not_found(e)

    @router.delete("/{post_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_comment(
        post_id: str, comment_id: str, admin: CurrentUser = Depends(require_admin)
    ):
        try:
            await content_service.delete_comment(kind, post_id, comment_id)
        except TargetNotFoundError as e:
            raise _not_found(e)

    @router.post("/{post_id}/comments/{comment_id}/upvote", response_model=VoteResponse)
    async def toggle_upvote(
        post_id: str, comment_id: str, current_user: CurrentUser = Depends(get_current_user)
    ):
        try:
            await content_service.get_visible_document(kind, post_id, current_user)
            tally, has_voted = await voting_service.toggle_vote(
                comment_ref(post_id, comment_id), current_user.uid, UPVOTES_FIELD
            )
        except TargetNotFoundError as e:
            raise _not_found(e)
        return _vote_response(tally, has_voted)

    @router.put("/{post_id}/comments/{comment_id}/seed", response_model=VoteResponse)
    async def set_comment_seed(
        post_id: str,
        comment_id: str,
        payload: SeedUpdateSchema,
        admin: CurrentUser = Depends(require_admin),
    ):
        try:
            tally = await voting_service.set_seed(
                comment_ref(post_id, comment_id), payload.seed, UPVOTES_FIELD
            )
        except TargetNotFoundError as e:
            raise _not_found(e)
        return _vote_response(tally)

    @router.delete("/{post_id}/comments/{comment_id}/seed", response_model=VoteResponse)
    async def reset_comment_seed(
        post_id: str, comment_id: str, admin: CurrentUser = Depends(require_admin)
    ):
        try:
            tally = await voting_service.reset_seed(comment_ref(post_id, comment_id), UPVOTES_FIELD)
        except TargetNotFoundError as e:
            raise _not_found(e)
        return _vote_response(tally)

    @router.delete("/{post_id}/comments/{comment_id}/voters", response_model=VoteResponse)
    async def reset_comment_voters(
        post_id: str, comment_id: str, admin: CurrentUser = Depends(require_admin)
    ):
        try:
            tally = await voting_service.reset_voters(
                comment_ref(post_id, comment_id), UPVOTES_FIELD
            )
        except TargetNotFoundError as e:
            raise _not_found(e)
        return _vote_response(tally)

    return router


articles_router = build_router(ContentKind.ARTICLES)
tutorials_router = build_router(ContentKind.TUTORIALS)
