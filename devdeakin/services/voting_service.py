"""
Seed + voters vote aggregation

One routine serves question votes, answer votes and comment upvotes. Each
update re-reads the target inside a Firestore transaction and rewrites the
derived total from that fresh read, so concurrent voters never lose updates.
Toggles are idempotent per account key, which makes racing toggles from the
same account converge on the same voters map.
"""

import logging
from typing import Callable, Tuple

from devdeakin.exceptions import TargetNotFoundError
from devdeakin.models.tally import VoteTally
from devdeakin.services.firebase_service import firebase_service

logger = logging.getLogger(__name__)

VOTES_FIELD = "votes"
UPVOTES_FIELD = "upvotes"


class VotingService:
    """Transactional read-modify-write over VoteTally documents"""

    async def toggle_vote(
        self, ref, uid: str, total_field: str = VOTES_FIELD
    ) -> Tuple[VoteTally, bool]:
        """Flip ``uid``'s vote. Returns the new tally and whether ``uid`` now has a vote."""
        tally = await self._apply(ref, total_field, lambda t: t.toggle(uid))
        return tally, tally.has_voted(uid)

    async def set_seed(self, ref, seed: int, total_field: str = VOTES_FIELD) -> VoteTally:
        return await self._apply(ref, total_field, lambda t: t.with_seed(seed))

    async def reset_voters(self, ref, total_field: str = VOTES_FIELD) -> VoteTally:
        return await self._apply(ref, total_field, lambda t: t.without_voters())

    async def reset_seed(self, ref, total_field: str = VOTES_FIELD) -> VoteTally:
        return await self._apply(ref, total_field, lambda t: t.with_seed(0))

    async def _apply(
        self, ref, total_field: str, change: Callable[[VoteTally], VoteTally]
    ) -> VoteTally:
        def _mutate(transaction) -> VoteTally:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise TargetNotFoundError(ref.path)
            tally = change(VoteTally.from_document(snapshot.to_dict()))
            transaction.update(ref, tally.to_update(total_field))
            return tally

        try:
            return await firebase_service.run_in_transaction(_mutate)
        except TargetNotFoundError:
            raise
        except Exception:
            logger.exception("Vote update failed for %s", ref.path)
            raise


voting_service = VotingService()
