import pytest

from gitverse.analytics.normalize import normalize_percentages


@pytest.mark.parametrize(
    argnames=("counts", "expected"),
    argvalues=[
        ([1, 1, 1], [33.34, 33.33, 33.33]),
        ([2, 1, 1, 1, 0], [40.0, 20.0, 20.0, 20.0, 0.0]),
        ([1, 2], [33.33, 66.67]),
        ([1, 1, 1, 1, 1, 1], [16.65, 16.67, 16.67, 16.67, 16.67, 16.67]),
        ([5], [100.0]),
        ([0, 3, 0], [0.0, 100.0, 0.0]),
        ([1, 7], [12.5, 87.5]),
    ],
    ids=["thirds", "fifths", "two", "sixths", "single", "one-nonzero", "exact"],
)
def test_normalize_percentages(counts: list[int], expected: list[float]):
    assert normalize_percentages(counts) == expected


def test_normalize_percentages_sum_to_one_hundred():
    for counts in ([1, 1, 1], [3, 7, 11, 13], [1] * 7, [999, 1, 1], [1, 2, 3, 4, 5, 6]):
        assert round(sum(normalize_percentages(counts)), 2) == 100.0


def test_normalize_percentages_residual_goes_to_first_largest():
    # 1/6 rounds up to 16.67, the overshoot is taken back from the first of the tied values.
    assert normalize_percentages([1, 1, 1, 1, 1, 1])[0] == 16.65
    # 1/3 rounds down to 33.33, the shortfall is given to the first of the tied values.
    assert normalize_percentages([1, 1, 1]) == [33.34, 33.33, 33.33]


def test_normalize_percentages_zero_total():
    assert normalize_percentages([0, 0, 0]) == [0.0, 0.0, 0.0]
    assert normalize_percentages([]) == []
