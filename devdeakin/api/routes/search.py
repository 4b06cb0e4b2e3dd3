"""Cross-collection search over public content"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from devdeakin.models.content import ContentKind
from devdeakin.schemas.content import SearchResponse
from devdeakin.services.content_service import content_service

router = APIRouter(prefix="/api/v1/search", tags=["Search"])


@router.get("/", response_model=SearchResponse)
async def search(
    q: str = Query("", max_length=200),
    kind: Optional[ContentKind] = Query(None, description="Limit to one collection"),
    limit: int = Query(20, ge=1, le=100),
    date_from: Optional[date] = Query(None, alias="from", description="YYYY-MM-DD"),
    date_to: Optional[date] = Query(None, alias="to", description="YYYY-MM-DD"),
):
    """
    Search articles, tutorials and questions by their stored search tokens

    - **q**: free text; up to 10 tokens are used, any one matching is a hit
    - **kind**: optional collection filter
    - **from** / **to**: optional inclusive creation-date range
    """
    kinds = [kind] if kind else list(ContentKind)
    results = await content_service.search(
        q, kinds, limit=limit, date_from=date_from, date_to=date_to
    )
    return SearchResponse(
        query=q,
        articles=results.get(ContentKind.ARTICLES, []),
        tutorials=results.get(ContentKind.TUTORIALS, []),
        questions=results.get(ContentKind.QUESTIONS, []),
    )
