"""Questions, answers and their votes"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from devdeakin.dependencies import get_current_user, get_optional_user, require_admin
from devdeakin.exceptions import TargetNotFoundError
from devdeakin.models.content import ContentKind, Answer, Question
from devdeakin.models.tally import VoteTally
from devdeakin.models.user import CurrentUser
from devdeakin.schemas.content import (
    AnswerCreateSchema,
    QuestionCreateSchema,
    QuestionDetailResponse,
    SeedUpdateSchema,
    VoteResponse,
)
from devdeakin.services.content_service import content_service
from devdeakin.services.firebase_service import firebase_service
from devdeakin.services.voting_service import voting_service, VOTES_FIELD

router = APIRouter(prefix="/api/v1/questions", tags=["Questions"])

COLLECTION = ContentKind.QUESTIONS.value


def _not_found(e: TargetNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _vote_response(tally: VoteTally, has_voted: Optional[bool] = None) -> VoteResponse:
    return VoteResponse(
        total=tally.total, seed=tally.seed, votersCount=len(tally.voters), hasVoted=has_voted
    )


def _question_ref(question_id: str):
    return firebase_service.document(COLLECTION, question_id)


def _answer_ref(question_id: str, answer_id: str):
    return firebase_service.document(COLLECTION, question_id, "answers", answer_id)


@router.post("/", response_model=Question, status_code=status.HTTP_201_CREATED)
async def create_question(
    payload: QuestionCreateSchema, current_user: CurrentUser = Depends(get_current_user)
):
    return await content_service.create_question(payload, current_user)


@router.get("/{question_id}", response_model=QuestionDetailResponse)
async def get_question(
    question_id: str, current_user: Optional[CurrentUser] = Depends(get_optional_user)
):
    """Question with its answers; drafts are visible to their author and admins only"""
    viewer_uid = current_user.uid if current_user else None
    try:
        question = await content_service.get_question(question_id, current_user)
    except TargetNotFoundError as e:
        raise _not_found(e)

    answers = await content_service.list_answers(question_id, viewer_uid)
    return QuestionDetailResponse(question=question, answers=answers)


@router.post("/{question_id}/views", status_code=status.HTTP_204_NO_CONTENT)
async def record_view(
    question_id: str, current_user: Optional[CurrentUser] = Depends(get_optional_user)
):
    try:
        await content_service.record_view(ContentKind.QUESTIONS, question_id, current_user)
    except TargetNotFoundError as e:
        raise _not_found(e)


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(question_id: str, admin: CurrentUser = Depends(require_admin)):
    """Delete the question with all of its answers"""
    try:
        await content_service.delete_content(ContentKind.QUESTIONS, question_id)
    except TargetNotFoundError as e:
        raise _not_found(e)


# ============================================
# QUESTION VOTES
# ============================================


@router.post("/{question_id}/vote", response_model=VoteResponse)
async def toggle_question_vote(
    question_id: str, current_user: CurrentUser = Depends(get_current_user)
):
    """Add the caller's vote, or remove it if already present"""
    try:
        await content_service.get_visible_document(
            ContentKind.QUESTIONS, question_id, current_user
        )
        tally, has_voted = await voting_service.toggle_vote(
            _question_ref(question_id), current_user.uid, VOTES_FIELD
        )
    except TargetNotFoundError as e:
        raise _not_found(e)
    return _vote_response(tally, has_voted)


@router.put("/{question_id}/seed", response_model=VoteResponse)
async def set_question_seed(
    question_id: str, payload: SeedUpdateSchema, admin: CurrentUser = Depends(require_admin)
):
    try:
        tally = await voting_service.set_seed(_question_ref(question_id), payload.seed)
    except TargetNotFoundError as e:
        raise _not_found(e)
    return _vote_response(tally)


@router.delete("/{question_id}/seed", response_model=VoteResponse)
async def reset_question_seed(question_id: str, admin: CurrentUser = Depends(require_admin)):
    """Zero the baseline, keeping account votes"""
    try:
        tally = await voting_service.reset_seed(_question_ref(question_id))
    except TargetNotFoundError as e:
        raise _not_found(e)
    return _vote_response(tally)


@router.delete("/{question_id}/voters", response_model=VoteResponse)
async def reset_question_voters(question_id: str, admin: CurrentUser = Depends(require_admin)):
    """Clear account votes, keeping the baseline"""
    try:
        tally = await voting_service.reset_voters(_question_ref(question_id))
    except TargetNotFoundError as e:
        raise _not_found(e)
    return _vote_response(tally)


# ============================================
# ANSWERS
# ============================================


@router.post(
    "/{question_id}/answers", response_model=Answer, status_code=status.HTTP_201_CREATED
)
async def post_answer(
    question_id: str,
    payload: AnswerCreateSchema,
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await content_service.add_answer(question_id, payload, current_user)
    except TargetNotFoundError as e:
        raise _not_found(e)


@router.post("/{question_id}/answers/{answer_id}/vote", response_model=VoteResponse)
async def toggle_answer_vote(
    question_id: str, answer_id: str, current_user: CurrentUser = Depends(get_current_user)
):
    try:
        await content_service.get_visible_document(
            ContentKind.QUESTIONS, question_id, current_user
        )
        tally, has_voted = await voting_service.toggle_vote(
            _answer_ref(question_id, answer_id), current_user.uid, VOTES_FIELD
        )
    except TargetNotFoundError as e:
        raise _not_found(e)
    return _vote_response(tally, has_voted)


@router.put("/{question_id}/answers/{answer_id}/seed", response_model=VoteResponse)
async def set_answer_seed(
    question_id: str,
    answer_id: str,
    payload: SeedUpdateSchema,
    admin: CurrentUser = Depends(require_admin),
):
    try:
        tally = await voting_service.set_seed(_answer_ref(question_id, answer_id), payload.seed)
    except TargetNotFoundError as e:
        raise _not_found(e)
    return _vote_response(tally)


@router.delete("/{question_id}/answers/{answer_id}/seed", response_model=VoteResponse)
async def reset_answer_seed(
    question_id: str, answer_id: str, admin: CurrentUser = Depends(require_admin)
):
    try:
        tally = await voting_service.reset_seed(_answer_ref(question_id, answer_id))
    except TargetNotFoundError as e:
        raise _not_found(e)
    return _vote_response(tally)


@router.delete("/{question_id}/answers/{answer_id}/voters", response_model=VoteResponse)
async def reset_answer_voters(
    question_id: str, answer_id: str, admin: CurrentUser = Depends(require_admin)
):
    try:
        tally = await voting_service.reset_voters(_answer_ref(question_id, answer_id))
    except TargetNotFoundError as e:
        raise _not_found(e)
    return _vote_response(tally)
