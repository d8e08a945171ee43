import pytest

from groupsettle.services.splits import SplitError, compute_shares, default_share_values


def test_equal_split():
    shares = compute_shares(90.0, "equal", [(1, None), (2, None), (3, None)])
    assert shares == [(1, 30.0), (2, 30.0), (3, 30.0)]


def test_equal_split_ignores_values():
    shares = compute_shares(10.0, "equal", [(1, 99.0), (2, None)])
    assert shares == [(1, 5.0), (2, 5.0)]


def test_percent_split():
    shares = compute_shares(200.0, "percent", [(1, 50), (2, 25), (3, 25)])
    assert shares == [(1, 100.0), (2, 50.0), (3, 50.0)]


def test_percent_must_total_100():
    with pytest.raises(SplitError, match="100%"):
        compute_shares(200.0, "percent", [(1, 50), (2, 40)])


def test_exact_split():
    shares = compute_shares(50.0, "exact", [(1, 20.0), (2, 30.0)])
    assert shares == [(1, 20.0), (2, 30.0)]


def test_exact_tolerates_one_cent():
    shares = compute_shares(90.0, "exact", [(1, 30.0), (2, 30.0), (3, 29.99)])
    assert sum(a for _, a in shares) == pytest.approx(89.99)


def test_exact_must_total_amount():
    with pytest.raises(SplitError, match="50.00"):
        compute_shares(50.0, "exact", [(1, 20.0), (2, 20.0)])


@pytest.mark.parametrize(
    "mode, participants",
    [
        ("equal", []),
        ("equal", [(1, None), (1, None)]),
        ("exact", [(1, None)]),
        ("exact", [(1, -5.0), (2, 15.0)]),
        ("weighted", [(1, None)]),
    ],
)
def test_rejected_inputs(mode, participants):
    with pytest.raises(SplitError):
        compute_shares(10.0, mode, participants)


def test_split_error_is_a_value_error():
    with pytest.raises(ValueError):
        compute_shares(0, "equal", [(1, None)])


def test_default_percent_gives_remainder_to_last():
    assert default_share_values("percent", [1, 2, 3], 90.0) == {1: 33.0, 2: 33.0, 3: 34.0}


def test_default_exact_rounds_to_cents():
    assert default_share_values("exact", [1, 2, 3], 100.0) == {1: 33.33, 2: 33.33, 3: 33.33}


def test_default_equal_is_empty():
    assert default_share_values("equal", [1, 2], 10.0) == {}
