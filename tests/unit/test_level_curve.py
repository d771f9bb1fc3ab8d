"""Level curve: pinned thresholds and cascading level-ups."""

import pytest

from playquest.gamification.level_curve import apply_xp, level_curve, xp_for_level


class TestXPForLevel:
    @pytest.mark.parametrize(
        ("level", "expected"),
        [(1, 100), (2, 150), (3, 225), (4, 337), (5, 506), (10, 3844)],
    )
    def test_pinned_values(self, level: int, expected: int) -> None:
        assert xp_for_level(level) == expected

    def test_level_below_one_rejected(self) -> None:
        with pytest.raises(ValueError):
            xp_for_level(0)

    def test_strictly_increasing(self) -> None:
        values = [xp_for_level(n) for n in range(1, 60)]
        assert values == sorted(values)
        assert len(set(values)) == len(values)


class TestApplyXP:
    def test_no_level_up(self) -> None:
        assert apply_xp(1, 0, 99) == (1, 99, 100, 0)

    def test_exact_threshold_levels_up(self) -> None:
        assert apply_xp(1, 0, 100) == (2, 0, 150, 1)

    def test_multi_level_cascade(self) -> None:
        """250 XP from zero crosses L1 (100) and L2 (150) in one grant."""
        assert apply_xp(1, 0, 250) == (3, 0, 225, 2)

    def test_carries_existing_progress(self) -> None:
        level, xp, threshold, gained = apply_xp(2, 140, 20)
        assert (level, xp, threshold, gained) == (3, 10, 225, 1)

    def test_current_xp_always_below_threshold(self) -> None:
        level, xp, threshold, _ = apply_xp(1, 0, 10_000)
        assert 0 <= xp < threshold
        assert threshold == xp_for_level(level)


class TestLevelCurveTable:
    def test_cumulative_totals(self) -> None:
        table = level_curve(4)
        assert [row["cumulative"] for row in table] == [0, 100, 250, 475]
        assert table[-1] == {"level": 4, "xp_to_next_level": 337, "cumulative": 475}
