"""Unit tests for the level curve."""

import pytest

from src.services import level_curve


@pytest.mark.unit
class TestXpRequirements:
    def test_level_one_requires_nothing(self):
        assert level_curve.xp_required_for_level(1) == 0
        assert level_curve.cumulative_xp_for_level(1) == 0

    def test_early_level_requirements(self):
        assert level_curve.xp_required_for_level(2) == 112
        assert level_curve.xp_required_for_level(3) == 124
        assert level_curve.cumulative_xp_for_level(3) == 236

    def test_requirements_increase_with_level(self):
        requirements = [level_curve.xp_required_for_level(level) for level in range(2, 100)]
        assert requirements == sorted(requirements)
        assert len(set(requirements)) == len(requirements)

    def test_cumulative_xp_is_strictly_monotonic(self):
        totals = [level_curve.cumulative_xp_for_level(level) for level in range(1, 100)]
        assert all(a < b for a, b in zip(totals, totals[1:], strict=False))

    def test_levels_above_cap_clamp_to_99(self):
        assert level_curve.cumulative_xp_for_level(150) == level_curve.cumulative_xp_for_level(99)
        assert level_curve.xp_required_for_level(100) == level_curve.xp_required_for_level(99)


@pytest.mark.unit
class TestLevelFromXp:
    def test_round_trip_for_every_level(self):
        for level in range(1, 100):
            assert level_curve.level_from_cumulative_xp(level_curve.cumulative_xp_for_level(level)) == level

    def test_one_xp_short_stays_on_previous_level(self):
        assert level_curve.level_from_cumulative_xp(111) == 1
        assert level_curve.level_from_cumulative_xp(112) == 2
        assert level_curve.level_from_cumulative_xp(235) == 2

    def test_xp_beyond_cap_stays_at_99(self):
        assert level_curve.level_from_cumulative_xp(10**9) == 99

    def test_zero_and_negative_xp_are_level_one(self):
        assert level_curve.level_from_cumulative_xp(0) == 1
        assert level_curve.level_from_cumulative_xp(-50) == 1


@pytest.mark.unit
class TestMultiplierAndTiers:
    @pytest.mark.parametrize(
        ("level", "expected"),
        [(1, 1.0), (9, 1.0), (10, 1.1), (25, 1.2), (55, 1.5), (89, 1.8), (90, 2.0), (99, 2.0)],
    )
    def test_difficulty_multiplier(self, level, expected):
        assert level_curve.difficulty_multiplier(level) == expected

    @pytest.mark.parametrize(
        ("level", "tier"),
        [(1, "Novice"), (9, "Novice"), (10, "Apprentice"), (45, "Master"), (90, "Transcendent"), (99, "Transcendent")],
    )
    def test_tier_name(self, level, tier):
        assert level_curve.tier_name(level) == tier


@pytest.mark.unit
class TestProgress:
    def test_progress_at_start_of_level(self):
        progress = level_curve.progress_to_next_level(0, 1)
        assert progress.xp_to_next == 112
        assert progress.current_level_xp == 0
        assert progress.percent_complete == 0.0

    def test_progress_halfway(self):
        progress = level_curve.progress_to_next_level(56, 1)
        assert progress.xp_to_next == 56
        assert progress.percent_complete == pytest.approx(50.0)

    def test_progress_is_clamped(self):
        # Stale level: more XP than the next level needs
        progress = level_curve.progress_to_next_level(500, 1)
        assert progress.xp_to_next == 0
        assert progress.percent_complete == 100.0

    def test_progress_at_cap_is_complete(self):
        total = level_curve.cumulative_xp_for_level(99) + 1000
        progress = level_curve.progress_to_next_level(total, 99)
        assert progress.xp_to_next == 0
        assert progress.percent_complete == 100.0
        assert progress.current_level_xp == 1000


@pytest.mark.unit
class TestLevelData:
    def test_table_covers_all_levels(self):
        assert [row.level for row in level_curve.LEVEL_DATA] == list(range(1, 100))

    def test_level_one_row(self):
        row = level_curve.get_level_data(1)
        assert row.total_xp_from_start == 0
        assert row.estimated_days == 0
        assert row.reward_coins == 60
        assert row.reward_badge is None

    def test_tier_milestone_has_badge_and_perk(self):
        row = level_curve.get_level_data(10)
        assert row.reward_badge == "Apprentice Badge"
        assert row.unlock_perk == "Custom Quest Colors"
        assert row.difficulty_multiplier == 1.1

    def test_every_fifth_level_has_milestone_badge(self):
        row = level_curve.get_level_data(15)
        assert row.reward_badge == "Level 15 Milestone Badge"
        assert row.unlock_perk is None

    def test_estimated_days_use_average_daily_xp(self):
        row = level_curve.get_level_data(3)
        assert row.estimated_days == 2  # ceil(236 / 175)

    def test_out_of_range_levels_clamp(self):
        assert level_curve.get_level_data(0).level == 1
        assert level_curve.get_level_data(150).level == 99
