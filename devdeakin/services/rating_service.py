"""
Seed + user star-rating aggregation for articles and tutorials
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from devdeakin.exceptions import TargetNotFoundError
from devdeakin.models.tally import RatingTally, as_int, clamp, MIN_STARS, MAX_STARS
from devdeakin.services.firebase_service import firebase_service

logger = logging.getLogger(__name__)

RATINGS_COLLECTION = "ratings"


class RatingService:
    """Transactional updates of the rating partitions on a content document"""

    async def rate(self, ref, uid: str, value: int) -> RatingTally:
        """
        Record ``uid``'s rating of the document at ``ref``.

        The account's own ``ratings/{uid}`` document is read in the same
        transaction so a re-rate replaces the previous value instead of adding
        a second one.
        """
        value = int(clamp(value, MIN_STARS, MAX_STARS))
        rating_ref = ref.collection(RATINGS_COLLECTION).document(uid)

        def _mutate(transaction) -> RatingTally:
            snapshot = ref.get(transaction=transaction)
            mine = rating_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise TargetNotFoundError(ref.path)
            previous = as_int((mine.to_dict() or {}).get("value")) if mine.exists else 0

            tally = RatingTally.from_document(snapshot.to_dict()).rate(value, previous)
            now = datetime.now(timezone.utc)
            transaction.set(rating_ref, {"value": value, "updatedAt": now}, merge=True)
            transaction.update(ref, {**tally.to_update(), "updatedAt": now})
            return tally

        return await self._run(ref, _mutate)

    async def apply_seed(self, ref, average: float, count: int) -> RatingTally:
        return await self._apply(ref, lambda t: t.with_seed(average, count))

    async def reset_seed(self, ref) -> RatingTally:
        return await self._apply(ref, lambda t: t.without_seed())

    async def reset_user_ratings(self, ref) -> RatingTally:
        """
        Drop every account rating; the totals fall back to the seed partition.

        The ``ratings/*`` documents are read and deleted in the same
        transaction that zeroes the user partition, so a concurrent ``rate``
        either lands before (and is wiped) or retries after.
        """
        ratings = ref.collection(RATINGS_COLLECTION)

        def _mutate(transaction) -> RatingTally:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise TargetNotFoundError(ref.path)
            existing = list(ratings.stream(transaction=transaction))

            tally = RatingTally.from_document(snapshot.to_dict()).without_user_ratings()
            for doc in existing:
                transaction.delete(doc.reference)
            transaction.update(
                ref, {**tally.to_update(), "updatedAt": datetime.now(timezone.utc)}
            )
            logger.info("Deleting %d user ratings under %s", len(existing), ref.path)
            return tally

        return await self._run(ref, _mutate)

    async def _apply(self, ref, change: Callable[[RatingTally], RatingTally]) -> RatingTally:
        def _mutate(transaction) -> RatingTally:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise TargetNotFoundError(ref.path)
            tally = change(RatingTally.from_document(snapshot.to_dict()))
            transaction.update(
                ref, {**tally.to_update(), "updatedAt": datetime.now(timezone.utc)}
            )
            return tally

        return await self._run(ref, _mutate)

    async def _run(self, ref, mutate) -> RatingTally:
        try:
            return await firebase_service.run_in_transaction(mutate)
        except TargetNotFoundError:
            raise
        except Exception:
            logger.exception("Rating update failed for %s", ref.path)
            raise


rating_service = RatingService()
