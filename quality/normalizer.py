"""
quality/normalizer.py

Deterministic normalization utilities for quality dimension scores.
"""


class ScoreNormalizer:
    """Provides stateless helpers that map raw counts and ages to 0-100 scores.

    All methods are deterministic and produce bounded float outputs.
    """

    def ratio_to_score(self, part: float, total: float, empty_default: float = 100.0) -> float:
        """Convert a part/total ratio to a percentage.

        Args:
            part: Count (or weight) of satisfying items.
            total: Count (or weight) of all items considered.
            empty_default: Score returned when nothing was considered.

        Returns:
            A float in the range [0, 100].
        """
        if total <= 0:
            return empty_default
        return self.clamp(part / total * 100.0, 0.0, 100.0)

    def linear_decay(self, age_days: float, fresh_after_days: float, stale_after_days: float) -> float:
        """Map a data age to a freshness score.

        Ages up to fresh_after_days score 100, ages from stale_after_days
        score 0, and ages in between are interpolated linearly.

        Args:
            age_days: Age of the data in days (negative ages count as fresh).
            fresh_after_days: Age until which data is fully fresh.
            stale_after_days: Age from which data is fully stale.

        Returns:
            A float in the range [0, 100].
        """
        if age_days <= fresh_after_days:
            return 100.0
        if age_days >= stale_after_days:
            return 0.0
        return self._interpolate(age_days, fresh_after_days, stale_after_days, 100.0, 0.0)

    def clamp(self, value: float, min_value: float, max_value: float) -> float:
        return max(min_value, min(value, max_value))

    def _interpolate(
        self,
        value: float,
        low_bound: float,
        high_bound: float,
        low_score: float,
        high_score: float,
    ) -> float:
        if high_bound == low_bound:
            return low_score
        fraction = (value - low_bound) / (high_bound - low_bound)
        return low_score + fraction * (high_score - low_score)
