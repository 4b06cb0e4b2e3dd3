"""
Vote and rating aggregates

Every aggregable document keeps an admin-set baseline ("seed") next to the
organic contributions, and stores the derived total alongside so list views
can sort on it. These models recompute the derived fields from the partitions;
they never trust a stored total.
"""

import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

MIN_STARS = 1
MAX_STARS = 5


def as_number(value: Any, default: float = 0) -> float:
    """Lenient numeric read of a Firestore field (missing, null or junk -> default)"""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def as_int(value: Any, default: int = 0) -> int:
    return int(as_number(value, default))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class VoteTally(BaseModel):
    """
    Seed + voters aggregate used by question votes, answer votes and comment upvotes.

    total = seed + number of accounts with a truthy entry in ``voters``.
    """

    seed: int = 0
    voters: Dict[str, bool] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> "VoteTally":
        data = data or {}
        raw_voters = data.get("voters") or {}
        if not isinstance(raw_voters, dict):
            raw_voters = {}
        return cls(
            seed=max(0, as_int(data.get("seed"))),
            voters={str(uid): True for uid, flag in raw_voters.items() if flag},
        )

    @property
    def total(self) -> int:
        return self.seed + len(self.voters)

    def has_voted(self, uid: str) -> bool:
        return uid in self.voters

    def toggle(self, uid: str) -> "VoteTally":
        voters = dict(self.voters)
        if uid in voters:
            del voters[uid]
        else:
            voters[uid] = True
        return self.model_copy(update={"voters": voters})

    def with_seed(self, seed: int) -> "VoteTally":
        return self.model_copy(update={"seed": max(0, int(seed))})

    def without_voters(self) -> "VoteTally":
        return self.model_copy(update={"voters": {}})

    def to_update(self, total_field: str = "votes") -> Dict[str, Any]:
        """Firestore update payload: partitions plus the derived total"""
        return {"seed": self.seed, "voters": dict(self.voters), total_field: self.total}


class RatingTally(BaseModel):
    """
    Star rating split into an admin seed partition and a user partition.

    The seed partition stands in for ratings the admin wants to pre-load
    (``seed_sum`` = average * count). Each account contributes at most one
    rating to the user partition; re-rating replaces its previous value.
    """

    seed_sum: int = 0
    seed_count: int = 0
    user_sum: int = 0
    user_count: int = 0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> "RatingTally":
        data = data or {}
        seed_sum = max(0, as_int(data.get("ratingSeedSum")))
        seed_count = max(0, as_int(data.get("ratingSeedCount")))

        # Older documents only carry the combined totals
        if data.get("ratingUserSum") is not None:
            user_sum = as_int(data.get("ratingUserSum"))
        else:
            user_sum = max(0, as_int(data.get("ratingSum")) - seed_sum)
        if data.get("ratingUserCount") is not None:
            user_count = as_int(data.get("ratingUserCount"))
        else:
            user_count = max(0, as_int(data.get("ratingCount")) - seed_count)

        return cls(
            seed_sum=seed_sum,
            seed_count=seed_count,
            user_sum=max(0, user_sum),
            user_count=max(0, user_count),
        )

    @property
    def total_sum(self) -> int:
        return self.seed_sum + self.user_sum

    @property
    def total_count(self) -> int:
        return self.seed_count + self.user_count

    @property
    def average(self) -> float:
        if self.total_count <= 0:
            return 0
        return round(self.total_sum / self.total_count, 2)

    def rate(self, value: int, previous: Optional[int] = None) -> "RatingTally":
        """Apply one account's rating, replacing its previous one if any"""
        value = int(clamp(value, MIN_STARS, MAX_STARS))
        previous = int(previous or 0)
        user_sum = self.user_sum - previous + value
        user_count = self.user_count if previous else self.user_count + 1
        return self.model_copy(update={"user_sum": max(0, user_sum), "user_count": user_count})

    def with_seed(self, average: float, count: int) -> "RatingTally":
        average = clamp(as_number(average), 0, MAX_STARS)
        count = max(0, int(count))
        return self.model_copy(
            update={"seed_sum": round_half_up(average * count), "seed_count": count}
        )

    def without_seed(self) -> "RatingTally":
        return self.model_copy(update={"seed_sum": 0, "seed_count": 0})

    def without_user_ratings(self) -> "RatingTally":
        return self.model_copy(update={"user_sum": 0, "user_count": 0})

    def to_update(self) -> Dict[str, Any]:
        return {
            "ratingSeedSum": self.seed_sum,
            "ratingSeedCount": self.seed_count,
            "ratingUserSum": self.user_sum,
            "ratingUserCount": self.user_count,
            "ratingSum": self.total_sum,
            "ratingCount": self.total_count,
            "rating": self.average,
        }
