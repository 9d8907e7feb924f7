from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

ONE_HUNDRED_PERCENT_IN_HUNDREDTHS = 10_000


def _to_hundredths(count: int, total: int) -> int:
    """Return `100 * count / total` rounded half-up to two decimals, expressed in hundredths of a percent."""

    raw = Decimal(count) * ONE_HUNDRED_PERCENT_IN_HUNDREDTHS / Decimal(total)
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def normalize_percentages(counts: Sequence[int]) -> list[float]:
    """Convert counts into percentages rounded to two decimals that sum to exactly 100.

    Each percentage is rounded independently, then the rounding residual is added in full to the largest rounded
    value. Ties go to the first occurrence. If the counts sum to zero, every percentage is zero."""

    total = sum(counts)

    if total == 0:
        return [0.0 for _ in counts]

    hundredths: list[int] = [_to_hundredths(count=count, total=total) for count in counts]

    if residual := ONE_HUNDRED_PERCENT_IN_HUNDREDTHS - sum(hundredths):
        largest_index = hundredths.index(max(hundredths))
        hundredths[largest_index] += residual

    return [value / 100 for value in hundredths]
