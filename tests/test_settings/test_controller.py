"""Tests for the settings page state machine with mocked collaborators."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from fitprofile.cache import QueryCache
from fitprofile.errors import (
    ProfileNotFoundError,
    SettingsStateError,
    SubmitInProgressError,
    WriteError,
)
from fitprofile.schemas.goal import GoalRead
from fitprofile.schemas.profile import Equipment, ProfileRead
from fitprofile.schemas.settings import SettingsSnapshot
from fitprofile.schemas.stats import PhysicalStatsRead, StatsUpdate
from fitprofile.settings.controller import (
    SettingsController,
    SettingsState,
    SubmitOutcome,
    summarize_goal,
)
from fitprofile.settings.repository import ProfileRepository
from fitprofile.store import ProfileStore

USER_ID = "user-1"


def _snapshot(stats: PhysicalStatsRead | None = None, goals: list[GoalRead] | None = None) -> SettingsSnapshot:
    return SettingsSnapshot(
        profile=ProfileRead(id=USER_ID, name="Alice", available_equipment=[Equipment.DUMBBELLS]),
        stats=stats,
        goals=goals or [],
    )


SCENARIO_A = _snapshot(stats=PhysicalStatsRead(height_cm=170, weight_kg=70, age=30, gender="female"))


def _controller(
    snapshot: SettingsSnapshot = SCENARIO_A,
) -> tuple[SettingsController, AsyncMock, MagicMock, AsyncMock]:
    repository = AsyncMock(spec=ProfileRepository)
    repository.fetch_snapshot.return_value = snapshot
    cache = MagicMock(spec=QueryCache)
    store = AsyncMock(spec=ProfileStore)
    controller = SettingsController(USER_ID, repository, cache, store)
    return controller, repository, cache, store


class TestLoad:
    async def test_scenario_a_seeds_form_and_bmi(self) -> None:
        controller, _, cache, _ = _controller()
        assert controller.state == SettingsState.LOADING

        assert await controller.load() == SettingsState.READY
        assert controller.form is not None
        assert controller.form.name == "Alice"
        assert controller.form.available_equipment == [Equipment.DUMBBELLS]
        assert controller.form.height_cm == "170"
        assert controller.form.weight_kg == "70"
        assert controller.form.age == "30"
        assert controller.form.gender == "female"
        assert controller.bmi_preview == 24.2
        cache.set.assert_called_once_with(f"userProfileData:{USER_ID}", SCENARIO_A)

    async def test_scenario_c_missing_stats_leave_fields_empty(self) -> None:
        controller, _, _, _ = _controller(_snapshot(stats=None))
        await controller.load()
        assert controller.state == SettingsState.READY
        assert controller.form is not None
        assert (controller.form.height_cm, controller.form.weight_kg) == ("", "")
        assert (controller.form.age, controller.form.gender) == ("", "")
        assert controller.bmi_preview is None

    async def test_profile_failure_enters_error(self) -> None:
        controller, repository, _, _ = _controller()
        repository.fetch_snapshot.side_effect = ProfileNotFoundError("No profile found for user user-1")
        assert await controller.load() == SettingsState.ERROR
        assert controller.error == "No profile found for user user-1"
        assert controller.view().state == "error"

    async def test_retry_from_error(self) -> None:
        controller, repository, _, _ = _controller()
        repository.fetch_snapshot.side_effect = [ProfileNotFoundError("gone"), SCENARIO_A]
        await controller.load()
        assert await controller.retry() == SettingsState.READY
        assert controller.error is None

    async def test_retry_only_from_error(self) -> None:
        controller, _, _, _ = _controller()
        await controller.load()
        with pytest.raises(SettingsStateError):
            await controller.retry()

    async def test_unexpected_failure_enters_error_and_allows_retry(self) -> None:
        controller, repository, _, _ = _controller()
        repository.fetch_snapshot.side_effect = [RuntimeError("row decode failed"), SCENARIO_A]

        assert await controller.load() == SettingsState.ERROR
        assert controller.error == "Failed to load profile settings."

        assert await controller.retry() == SettingsState.READY
        assert controller.form is not None

    async def test_close_discards_pending_fetch(self) -> None:
        controller, repository, cache, _ = _controller()
        release = asyncio.Event()

        async def slow_fetch(user_id: str) -> SettingsSnapshot:
            await release.wait()
            return SCENARIO_A

        repository.fetch_snapshot.side_effect = slow_fetch
        task = asyncio.create_task(controller.load())
        await asyncio.sleep(0)
        controller.close()
        release.set()
        await task

        assert controller.state == SettingsState.LOADING
        assert controller.form is None
        cache.set.assert_not_called()

    async def test_load_after_close_rejected(self) -> None:
        controller, _, _, _ = _controller()
        controller.close()
        with pytest.raises(SettingsStateError):
            await controller.load()


class TestEditing:
    async def test_edit_fields(self) -> None:
        controller, _, _, _ = _controller()
        await controller.load()
        form = controller.edit(height_cm="180", weight_kg=80)
        assert form.height_cm == "180"
        assert form.weight_kg == "80"
        assert controller.bmi_preview == 24.7

    async def test_edit_rejects_bad_values(self) -> None:
        controller, _, _, _ = _controller()
        await controller.load()
        with pytest.raises(ValidationError):
            controller.edit(height_cm="tall")
        with pytest.raises(ValidationError):
            controller.edit(age="-3")
        with pytest.raises(ValidationError):
            controller.edit(gender="robot")
        assert controller.form is not None
        assert controller.form.height_cm == "170"

    async def test_edit_rejects_unknown_fields(self) -> None:
        controller, _, _, _ = _controller()
        await controller.load()
        with pytest.raises(ValueError, match="email"):
            controller.edit(email="a@b.c")

    async def test_edit_requires_ready(self) -> None:
        controller, _, _, _ = _controller()
        with pytest.raises(SettingsStateError):
            controller.edit(name="Bob")

    async def test_toggle_equipment(self) -> None:
        controller, _, _, _ = _controller()
        await controller.load()
        controller.toggle_equipment("Barbell")
        assert controller.form is not None
        assert controller.form.available_equipment == [Equipment.DUMBBELLS, Equipment.BARBELL]
        controller.toggle_equipment(Equipment.DUMBBELLS)
        assert controller.form.available_equipment == [Equipment.BARBELL]
        with pytest.raises(ValueError):
            controller.toggle_equipment("Treadmill")


class TestSubmit:
    async def test_scenario_b_only_age_changed(self) -> None:
        controller, repository, _, _ = _controller()
        await controller.load()
        controller.edit(age="31")

        result = await controller.submit()

        assert result.outcome == SubmitOutcome.SAVED
        repository.apply_update.assert_awaited_once()
        kwargs = repository.apply_update.call_args.kwargs
        assert kwargs["profile_updates"].is_empty
        assert kwargs["stats_updates"] == StatsUpdate(
            height_cm=170.0, weight_kg=70.0, age=31, gender="female"
        )

    async def test_scenario_d_no_changes(self) -> None:
        controller, repository, cache, store = _controller()
        await controller.load()

        result = await controller.submit()

        assert result.outcome == SubmitOutcome.NO_CHANGES
        assert result.message == "No changes detected."
        repository.apply_update.assert_not_called()
        cache.invalidate.assert_not_called()
        store.refresh_profile.assert_not_called()
        assert controller.state == SettingsState.READY
        assert controller.notice is not None and controller.notice.kind == "info"

    async def test_scenario_e_invalidates_and_refreshes(self) -> None:
        controller, repository, cache, store = _controller()
        await controller.load()
        controller.edit(name="Alicia")

        result = await controller.submit()

        assert result.outcome == SubmitOutcome.SAVED
        invalidated = [c.args[0] for c in cache.invalidate.call_args_list]
        assert sorted(invalidated) == sorted(
            [f"userProfileData:{USER_ID}", f"dashboardData:{USER_ID}", f"userGoals:{USER_ID}"]
        )
        store.refresh_profile.assert_awaited_once_with(USER_ID)
        # Fresh fetch after saving
        assert repository.fetch_snapshot.await_count == 2
        assert controller.state == SettingsState.READY
        assert controller.notice is not None
        assert controller.notice.message == "Profile updated successfully!"

    async def test_write_failure_keeps_edits(self) -> None:
        controller, repository, cache, store = _controller()
        repository.apply_update.side_effect = WriteError(
            "Stats update failed: check constraint", failed=["stats"]
        )
        await controller.load()
        controller.edit(weight_kg="68.5", name="Alicia")

        result = await controller.submit()

        assert result.outcome == SubmitOutcome.FAILED
        assert result.message == "Update failed: Stats update failed: check constraint"
        assert controller.state == SettingsState.READY
        assert controller.form is not None
        assert controller.form.weight_kg == "68.5"
        assert controller.form.name == "Alicia"
        assert controller.notice is not None and controller.notice.kind == "error"
        cache.invalidate.assert_not_called()
        store.refresh_profile.assert_not_called()
        assert repository.fetch_snapshot.await_count == 1

    async def test_unlisted_stored_gender_is_not_a_change(self) -> None:
        snapshot = _snapshot(stats=PhysicalStatsRead(height_cm=170, weight_kg=70, age=30, gender="Male"))
        controller, repository, _, _ = _controller(snapshot)
        await controller.load()
        assert controller.form is not None
        assert controller.form.gender == ""

        result = await controller.submit()

        assert result.outcome == SubmitOutcome.NO_CHANGES
        repository.apply_update.assert_not_called()

    async def test_unexpected_write_error_returns_to_ready(self) -> None:
        controller, repository, cache, _ = _controller()
        repository.apply_update.side_effect = RuntimeError("connection reset")
        await controller.load()
        controller.edit(name="Alicia")

        result = await controller.submit()

        assert result.outcome == SubmitOutcome.FAILED
        assert controller.state == SettingsState.READY
        assert not controller.write_in_flight
        assert controller.form is not None and controller.form.name == "Alicia"
        assert controller.notice is not None and controller.notice.kind == "error"
        cache.invalidate.assert_not_called()

    async def test_failed_reload_after_save_has_no_success_notice(self) -> None:
        controller, repository, _, _ = _controller()
        repository.fetch_snapshot.side_effect = [SCENARIO_A, ProfileNotFoundError("gone")]
        await controller.load()
        controller.edit(name="Alicia")

        result = await controller.submit()

        assert result.outcome == SubmitOutcome.SAVED
        assert controller.state == SettingsState.ERROR
        assert controller.notice is None

    async def test_pending_changes_before_load(self) -> None:
        controller, _, _, _ = _controller()
        with pytest.raises(SettingsStateError, match="not been loaded"):
            controller.pending_changes()

    async def test_second_submit_while_in_flight_rejected(self) -> None:
        controller, repository, _, _ = _controller()
        release = asyncio.Event()

        async def slow_write(*args: object, **kwargs: object) -> None:
            await release.wait()

        repository.apply_update.side_effect = slow_write
        await controller.load()
        controller.edit(name="Bob")

        first = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        assert controller.state == SettingsState.SUBMITTING
        assert controller.write_in_flight
        with pytest.raises(SubmitInProgressError):
            await controller.submit()

        release.set()
        assert (await first).outcome == SubmitOutcome.SAVED
        repository.apply_update.assert_awaited_once()

    async def test_close_during_write_skips_reload(self) -> None:
        controller, repository, cache, store = _controller()
        release = asyncio.Event()

        async def slow_write(*args: object, **kwargs: object) -> None:
            await release.wait()

        repository.apply_update.side_effect = slow_write
        await controller.load()
        controller.edit(name="Bob")

        task = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        controller.close()
        release.set()
        result = await task

        assert result.outcome == SubmitOutcome.SAVED
        assert cache.invalidate.call_count == 3
        store.refresh_profile.assert_awaited_once_with(USER_ID)
        assert repository.fetch_snapshot.await_count == 1


class TestView:
    async def test_goal_preview(self) -> None:
        goals = [
            GoalRead(
                id=i,
                goal_type="weight_loss",
                status="active",
                metric_type="weight",
                target_value=65.0,
                target_date=date(2024, 12, 31),
            )
            for i in range(1, 5)
        ]
        controller, _, _, _ = _controller(_snapshot(goals=goals))
        await controller.load()

        view = controller.view()
        assert view.total_goals == 4
        assert [g.id for g in view.goals] == [1, 2, 3]
        assert view.goals[0].label == "Weight Loss"
        assert view.goals[0].target == "65 kg"
        assert view.goals[0].detail_path == "/goals/1"
        assert view.create_goal_path == "/goals/create"
        assert "Resistance Band" in view.equipment_options
        assert "prefer_not_say" in view.gender_options

    def test_summarize_goal_linked_plan(self) -> None:
        goal = GoalRead.model_validate(
            {
                "id": 7,
                "goal_type": "improved_endurance",
                "status": "completed",
                "metric_type": "distance",
                "target_value": 10,
                "goal_workout_plans": [{"template_id": 3, "workout_templates": None}],
            }
        )
        summary = summarize_goal(goal)
        assert summary.label == "Improved Endurance"
        assert summary.target == "10"
        assert summary.linked_plan == "Custom plan"

    def test_summarize_goal_without_plans(self) -> None:
        summary = summarize_goal(GoalRead(id="g-1", goal_type="general_fitness"))
        assert summary.linked_plan is None
        assert summary.target == ""
