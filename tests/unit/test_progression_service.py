"""Unit tests for XP, currencies, reward redemption, skills and achievements."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from src.core.errors import Rejection
from src.domain.reward import CustomRewardCreate, Equipment, EquipmentSlot, InventoryItem, RedeemPeriod
from src.domain.user import DebuffKind, NotificationKind
from src.services import progression_service
from src.services.level_curve import cumulative_xp_for_level


def _shop(reward_id):
    return next(r for r in progression_service.REWARD_SHOP if r.id == reward_id)


@pytest.mark.unit
class TestAddXp:
    def test_level_up_grants_skill_points(self, user, deps, notifier):
        """Test that reaching the next level awards three skill points and notifies."""
        result = progression_service.add_xp(user, 112, deps=deps)

        assert result.old_level == 1
        assert result.new_level == 2
        assert result.levels_gained == 1
        assert result.skill_points_gained == 3
        assert user.level == 2
        assert user.skill_points == 3
        assert user.xp_to_next_level == 124
        assert notifier.kinds() == [NotificationKind.LEVEL_UP]

    def test_just_below_threshold_keeps_level(self, user, deps, notifier):
        progression_service.add_xp(user, 90, deps=deps)
        result = progression_service.add_xp(user, 20, deps=deps)

        assert result.levels_gained == 0
        assert user.level == 1
        assert user.xp_to_next_level == 2
        assert notifier.sent == []

    def test_multiple_levels_at_once(self, user, deps):
        result = progression_service.add_xp(user, 236, deps=deps)

        assert result.levels_gained == 2
        assert user.skill_points == 6

    def test_xp_is_floored_at_zero(self, user, deps):
        progression_service.add_xp(user, 50, deps=deps)
        result = progression_service.add_xp(user, -500, deps=deps)

        assert result.xp == 0
        assert user.level == 1

    def test_losing_levels_keeps_skill_points(self, user, deps):
        progression_service.add_xp(user, 300, deps=deps)
        assert user.level == 3

        result = progression_service.add_xp(user, -200, deps=deps)

        assert user.level == 1
        assert result.levels_gained == 0
        assert user.skill_points == 6

    def test_reaching_level_ten_unlocks_achievement(self, user, deps):
        result = progression_service.add_xp(user, cumulative_xp_for_level(10), deps=deps)

        assert "level_10" in result.achievements_unlocked
        assert user.coins == 15


@pytest.mark.unit
class TestCurrencies:
    def test_credit_coins(self, user, deps):
        result = progression_service.add_coins(user, 25, deps=deps)
        assert result.success
        assert user.coins == 25

    def test_overdraw_is_rejected_without_mutation(self, user, deps, notifier):
        user.coins = 10

        result = progression_service.add_coins(user, -20, deps=deps)

        assert not result.success
        assert result.rejection == Rejection.INSUFFICIENT_FUNDS
        assert result.balance == 10
        assert user.coins == 10
        assert notifier.kinds() == [NotificationKind.INSUFFICIENT_FUNDS]

    def test_exact_debit_reaches_zero(self, user, deps):
        user.gems = 3
        assert progression_service.add_gems(user, -3, deps=deps).success
        assert user.gems == 0


@pytest.mark.unit
class TestRedeemReward:
    def test_daily_limit_resets_next_day(self, user, deps, clock):
        """Test that a once-per-day reward can be redeemed again after midnight."""
        user.coins = 100
        coffee = _shop("shop-coffee")

        first = progression_service.redeem_reward(user, coffee, deps=deps)
        second = progression_service.redeem_reward(user, coffee, deps=deps)
        clock.advance(days=1)
        third = progression_service.redeem_reward(user, coffee, deps=deps)

        assert first.success
        assert first.redeemed_count == 1
        assert second.rejection == Rejection.REDEMPTION_LIMIT_REACHED
        assert third.success
        assert user.coins == 0

    def test_weekly_limit_resets_on_sunday(self, user, deps, clock):
        """Test that weekly redemption windows run Sunday to Saturday."""
        user.coins = 500
        movie = _shop("shop-movie-night")
        assert progression_service.redeem_reward(user, movie, deps=deps).success

        clock.advance(days=3)  # Saturday
        assert progression_service.redeem_reward(user, movie, deps=deps).rejection == (
            Rejection.REDEMPTION_LIMIT_REACHED
        )

        clock.advance(days=1)  # Sunday
        assert progression_service.redeem_reward(user, movie, deps=deps).success
        assert user.coins == 200

    def test_saturday_then_sunday_redemptions_fall_in_different_weeks(self, user, deps, clock):
        user.coins = 300
        movie = _shop("shop-movie-night")
        clock.set(datetime(2026, 1, 17, 21, 0, tzinfo=UTC))
        first = progression_service.redeem_reward(user, movie, deps=deps)

        clock.set(datetime(2026, 1, 18, 9, 0, tzinfo=UTC))
        second = progression_service.redeem_reward(user, movie, deps=deps)

        assert first.success
        assert second.success
        assert second.redeemed_count == 1

    def test_weekly_window_follows_local_calendar(self, user, deps, clock):
        """Test that the Sunday boundary is taken in the clock's timezone."""
        tokyo = ZoneInfo("Asia/Tokyo")
        clock.tz = tokyo
        user.coins = 300
        movie = _shop("shop-movie-night")
        # Saturday 23:30 in Tokyo
        clock.set(datetime(2026, 1, 17, 23, 30, tzinfo=tokyo))
        assert progression_service.redeem_reward(user, movie, deps=deps).success

        # 15:30 UTC on Saturday is already Sunday in Tokyo
        clock.set(datetime(2026, 1, 17, 15, 30, tzinfo=UTC))
        assert progression_service.redeem_reward(user, movie, deps=deps).success

    def test_limit_is_checked_before_funds(self, user, deps):
        user.coins = 50
        coffee = _shop("shop-coffee")
        progression_service.redeem_reward(user, coffee, deps=deps)

        result = progression_service.redeem_reward(user, coffee, deps=deps)

        assert result.rejection == Rejection.REDEMPTION_LIMIT_REACHED

    def test_insufficient_funds(self, user, deps):
        user.coins = 10

        result = progression_service.redeem_reward(user, _shop("shop-coffee"), deps=deps)

        assert result.rejection == Rejection.INSUFFICIENT_FUNDS
        assert user.coins == 10
        assert user.redeemed_rewards == []

    def test_level_requirement(self, user, deps):
        user.gems = 10
        day_off = _shop("shop-day-off")

        result = progression_service.redeem_reward(user, day_off, deps=deps)
        assert result.rejection == Rejection.LEVEL_REQUIREMENT_NOT_MET
        assert user.gems == 10

        user.xp = cumulative_xp_for_level(10)
        progression_service.sync_level(user)
        assert progression_service.redeem_reward(user, day_off, deps=deps).success
        assert user.gems == 5

    def test_item_reward_goes_to_inventory(self, user, deps, notifier):
        user.coins = 150
        potion = _shop("shop-health-potion")

        progression_service.redeem_reward(user, potion, deps=deps)
        result = progression_service.redeem_reward(user, potion, deps=deps)

        assert result.success
        assert result.item.name == "Health Potion"
        assert [item.id for item in user.inventory] == ["item-health-potion", "item-health-potion"]
        assert notifier.kinds() == [NotificationKind.ITEM_PURCHASED, NotificationKind.ITEM_PURCHASED]

    def test_limit_without_period_counts_all_redemptions(self, user, deps, clock):
        user.coins = 100
        reward = progression_service.add_custom_reward(
            user, CustomRewardCreate(title="Ice cream", coin_cost=10, redeem_limit=2)
        )

        progression_service.redeem_reward(user, reward, deps=deps)
        clock.advance(days=40)
        progression_service.redeem_reward(user, reward, deps=deps)
        clock.advance(days=40)
        result = progression_service.redeem_reward(user, reward, deps=deps)

        assert result.rejection == Rejection.REDEMPTION_LIMIT_REACHED
        assert result.redeemed_count == 2

    def test_monthly_window(self, user, deps, clock):
        reward = progression_service.add_custom_reward(
            user, CustomRewardCreate(title="Spa", redeem_limit=1, redeem_period=RedeemPeriod.MONTHLY)
        )
        assert progression_service.redeem_reward(user, reward, deps=deps).success

        clock.set(datetime(2026, 1, 31, 23, 0, tzinfo=UTC))
        assert not progression_service.redeem_reward(user, reward, deps=deps).success

        clock.set(datetime(2026, 2, 1, 0, 30, tzinfo=UTC))
        assert progression_service.redeem_reward(user, reward, deps=deps).success


@pytest.mark.unit
class TestCustomRewards:
    def test_add_and_find(self, user):
        reward = progression_service.add_custom_reward(user, CustomRewardCreate(title="Book", gem_cost=1))

        assert reward.id.startswith("custom-")
        assert reward.category == "Custom"
        assert progression_service.find_reward(user, reward.id) is reward
        assert progression_service.find_reward(user, "shop-coffee").title == "Fancy Coffee"

    def test_delete(self, user):
        reward = progression_service.add_custom_reward(user, CustomRewardCreate(title="Book", coin_cost=5))

        assert progression_service.delete_custom_reward(user, reward.id)
        assert not progression_service.delete_custom_reward(user, reward.id)
        assert progression_service.find_reward(user, reward.id) is None

    def test_reward_cannot_cost_both_currencies(self):
        with pytest.raises(ValueError):
            CustomRewardCreate(title="Both", coin_cost=5, gem_cost=1)


@pytest.mark.unit
class TestEquipment:
    def test_equip_weapon_from_inventory(self, user, deps, notifier):
        """Test that an item is equipped into the slot named by its type."""
        blade = InventoryItem(id="item-focus-blade", name="Blade of Focus", type="Weapon")
        user.inventory.append(blade)

        result = progression_service.equip_item(user, "item-focus-blade", deps=deps)

        assert result.success
        assert result.slot == EquipmentSlot.WEAPON
        assert result.replaced is None
        assert user.equipment.weapon == blade
        assert user.inventory == [blade]
        assert notifier.kinds() == [NotificationKind.ITEM_EQUIPPED]

    def test_equipping_replaces_slot(self, user, deps):
        old = InventoryItem(id="item-wooden-shield", name="Wooden Shield", type="shield")
        new = InventoryItem(id="item-steadfast-shield", name="Steadfast Shield", type="Shield")
        user.inventory.extend([old, new])
        progression_service.equip_item(user, old.id, deps=deps)

        result = progression_service.equip_item(user, new.id, deps=deps)

        assert result.replaced == old
        assert user.equipment.shield == new

    def test_potion_is_not_equippable(self, user, deps, notifier):
        user.inventory.append(InventoryItem(id="item-health-potion", name="Health Potion", type="Potion"))

        result = progression_service.equip_item(user, "item-health-potion", deps=deps)

        assert result.rejection == Rejection.ITEM_NOT_EQUIPPABLE
        assert user.equipment == Equipment()
        assert notifier.sent == []

    def test_item_must_be_owned(self, user, deps):
        result = progression_service.equip_item(user, "item-focus-blade", deps=deps)

        assert result.rejection == Rejection.NOT_FOUND

    def test_purchased_weapon_can_be_equipped(self, user, deps):
        progression_service.add_xp(user, cumulative_xp_for_level(3), deps=deps)
        user.coins = 300

        bought = progression_service.redeem_reward(user, _shop("shop-focus-blade"), deps=deps)
        result = progression_service.equip_item(user, bought.item.id, deps=deps)

        assert result.success
        assert user.equipment.weapon.name == "Blade of Focus"


@pytest.mark.unit
class TestSkills:
    def test_upgrade_spends_points(self, user, deps):
        user.skill_points = 2

        result = progression_service.upgrade_skill(user, "Body", "Vitality", deps=deps)

        assert result.success
        assert result.level == 1
        assert user.skill_points == 1

    def test_upgrade_without_points(self, user, deps):
        result = progression_service.upgrade_skill(user, "Mind", "Focus", deps=deps)
        assert result.rejection == Rejection.INSUFFICIENT_SKILL_POINTS

    def test_upgrade_maxed_skill(self, user, deps):
        user.skill_points = 10
        skill = user.skill_trees[0].skills[0]
        skill.level = skill.max_level

        result = progression_service.upgrade_skill(user, "Body", skill.name, deps=deps)

        assert result.rejection == Rejection.SKILL_MAXED
        assert user.skill_points == 10

    def test_unknown_skill(self, user, deps):
        user.skill_points = 10
        result = progression_service.upgrade_skill(user, "Body", "Flight", deps=deps)
        assert result.rejection == Rejection.NOT_FOUND


@pytest.mark.unit
class TestAchievements:
    def test_unlocks_are_paid_once(self, user, deps):
        user.tasks_completed = 10

        first = progression_service.evaluate_achievements(user, deps=deps)
        second = progression_service.evaluate_achievements(user, deps=deps)

        assert first == ["first_task", "task_10"]
        assert second == []
        assert user.coins == 30

    def test_unlock_is_timestamped(self, user, deps, clock):
        user.streak = 7
        progression_service.evaluate_achievements(user, deps=deps)

        achievement = next(a for a in user.achievements if a.id == "week_streak")
        assert achievement.unlocked
        assert achievement.unlocked_at == clock.now()

    def test_merge_restores_saved_state(self):
        merged = progression_service.merge_achievements(
            [{"id": "first_task", "unlocked_at": "2026-01-01T08:00:00+00:00"}, {"id": "retired_badge"}]
        )

        assert [a.id for a in merged] == [rule.id for rule in progression_service.ACHIEVEMENT_RULES]
        first = merged[0]
        assert first.unlocked
        assert first.unlocked_at == datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
        assert not any(a.unlocked for a in merged[1:])

    def test_merge_of_nothing_is_catalog(self):
        assert progression_service.merge_achievements(None) == progression_service.catalog_achievements()


@pytest.mark.unit
class TestDebuffs:
    def test_apply_debuff(self, user):
        debuff = progression_service.apply_debuff(user, kind=DebuffKind.POISON, name="Food poisoning", duration=2)

        assert user.debuffs == [debuff]
        assert debuff.potency == 5
