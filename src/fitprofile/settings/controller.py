"""Settings page state machine.

    loading ──ok──▶ ready ──submit (changes)──▶ submitting ──ok──▶ loading
       │              ▲                              │
       │              └─────────── write failed ─────┘
       └──failed──▶ error ──retry──▶ loading

The controller owns every side effect of a successful write: invalidating
cached views and refreshing the global profile store. Results of calls that
complete after ``close()`` are discarded.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fitprofile.cache import DASHBOARD_DATA, USER_GOALS, USER_PROFILE_DATA, QueryCache, query_key
from fitprofile.errors import (
    SettingsStateError,
    SnapshotFetchError,
    SubmitInProgressError,
    WriteError,
)
from fitprofile.schemas.goal import GoalRead
from fitprofile.schemas.profile import EQUIPMENT_OPTIONS, GENDER_OPTIONS, Equipment
from fitprofile.schemas.settings import (
    GoalSummary,
    Notice,
    SettingsForm,
    SettingsSnapshot,
    SettingsView,
    field_text,
)
from fitprofile.schemas.stats import PhysicalStatsRead
from fitprofile.settings.bmi import compute_bmi
from fitprofile.settings.changes import SettingsChanges, detect_changes, stored_gender, stored_number
from fitprofile.settings.repository import ProfileRepository
from fitprofile.store import ProfileStore

logger = logging.getLogger(__name__)

GOALS_PREVIEW_LIMIT = 3
INVALIDATED_VIEWS = (USER_PROFILE_DATA, DASHBOARD_DATA, USER_GOALS)


class SettingsState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"
    ERROR = "error"


class SubmitOutcome(str, Enum):
    SAVED = "saved"
    NO_CHANGES = "no_changes"
    FAILED = "failed"


@dataclass
class SubmitResult:
    outcome: SubmitOutcome
    message: str


def seed_form(snapshot: SettingsSnapshot) -> SettingsForm:
    """Build the initial form from a snapshot; missing values become ""."""
    profile = snapshot.profile
    stats = snapshot.stats or PhysicalStatsRead()
    return SettingsForm(
        name=profile.name or "",
        available_equipment=list(profile.available_equipment or []),
        height_cm=field_text(stored_number(stats.height_cm)),
        weight_kg=field_text(stored_number(stats.weight_kg)),
        age=field_text(stored_number(stats.age)),
        gender=stored_gender(stats.gender) or "",
    )


def summarize_goal(goal: GoalRead) -> GoalSummary:
    if goal.target_value is None:
        target = ""
    else:
        target = field_text(goal.target_value)
        if goal.metric_type == "weight":
            target = f"{target} kg"

    linked_plan = None
    if goal.linked_plans:
        linked_plan = goal.linked_plans[0].name or "Custom plan"

    return GoalSummary(
        id=goal.id,
        label=goal.goal_type.replace("_", " ").title(),
        status=goal.status,
        target=target,
        target_date=goal.target_date,
        linked_plan=linked_plan,
        detail_path=f"/goals/{goal.id}",
    )


class SettingsController:
    """Drives one user's settings page from first fetch to saved changes."""

    def __init__(
        self,
        user_id: str,
        repository: ProfileRepository,
        cache: QueryCache,
        profile_store: ProfileStore,
    ) -> None:
        self.user_id = user_id
        self.repository = repository
        self.cache = cache
        self.profile_store = profile_store

        self.state = SettingsState.LOADING
        self.snapshot: SettingsSnapshot | None = None
        self.form: SettingsForm | None = None
        self.notice: Notice | None = None
        self.error: str | None = None

        self._generation = 0
        self._closed = False
        self._write_in_flight = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def write_in_flight(self) -> bool:
        return self._write_in_flight

    def _is_stale(self, generation: int) -> bool:
        return self._closed or generation != self._generation

    def _require(self, *states: SettingsState) -> None:
        if self._closed:
            raise SettingsStateError("Settings page is closed")
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SettingsStateError(f"Not allowed while {self.state.value} (needs {allowed})")

    async def load(self) -> SettingsState:
        """Fetch a fresh snapshot and seed the form from it."""
        if self._closed:
            raise SettingsStateError("Settings page is closed")
        self._generation += 1
        generation = self._generation
        self.state = SettingsState.LOADING
        self.error = None

        try:
            snapshot = await self.repository.fetch_snapshot(self.user_id)
        except SnapshotFetchError as e:
            if self._is_stale(generation):
                return self.state
            logger.error("Error loading settings for user %s: %s", self.user_id, e)
            return self._fail_load(str(e))
        except Exception:
            if self._is_stale(generation):
                return self.state
            logger.exception("Unexpected error loading settings for user %s", self.user_id)
            return self._fail_load("Failed to load profile settings.")

        if self._is_stale(generation):
            logger.debug("Discarding stale snapshot for user %s", self.user_id)
            return self.state

        try:
            form = seed_form(snapshot)
        except ValueError:
            logger.exception("Could not seed settings form for user %s", self.user_id)
            return self._fail_load("Failed to load profile settings.")

        self.snapshot = snapshot
        self.form = form
        self.cache.set(query_key(USER_PROFILE_DATA, self.user_id), snapshot)
        self.state = SettingsState.READY
        return self.state

    def _fail_load(self, message: str) -> SettingsState:
        self.error = message
        self.state = SettingsState.ERROR
        return self.state

    async def retry(self) -> SettingsState:
        self._require(SettingsState.ERROR)
        return await self.load()

    def edit(self, **fields: Any) -> SettingsForm:
        """Update form fields. Raises pydantic.ValidationError on bad values."""
        self._require(SettingsState.READY)
        unknown = set(fields) - set(SettingsForm.model_fields)
        if unknown:
            raise ValueError(f"Unknown form fields: {', '.join(sorted(unknown))}")
        form = self._current_form()
        self.form = SettingsForm.model_validate({**form.model_dump(), **fields})
        return self.form

    def toggle_equipment(self, item: Equipment | str) -> SettingsForm:
        self._require(SettingsState.READY)
        form = self._current_form()
        equipment = Equipment(item)
        selected = list(form.available_equipment)
        if equipment in selected:
            selected.remove(equipment)
        else:
            selected.append(equipment)
        self.form = form.model_copy(update={"available_equipment": selected})
        return self.form

    def _current_form(self) -> SettingsForm:
        if self.form is None:
            raise SettingsStateError("Settings form has not been loaded")
        return self.form

    @property
    def bmi_preview(self) -> float | None:
        if self.form is None:
            return None
        return compute_bmi(self.form.height_cm, self.form.weight_kg)

    def pending_changes(self) -> SettingsChanges:
        return detect_changes(self._current_form(), self.snapshot)

    async def submit(self) -> SubmitResult:
        """Save whatever changed since the last fetch.

        Only one write may be in flight; a second submit raises
        SubmitInProgressError. A failed write keeps the user's edits.
        """
        if self._write_in_flight:
            raise SubmitInProgressError("An update is already being saved")
        self._require(SettingsState.READY)

        changes = self.pending_changes()
        if changes.is_empty:
            message = "No changes detected."
            self.notice = Notice(kind="info", message=message)
            return SubmitResult(SubmitOutcome.NO_CHANGES, message)

        generation = self._generation
        self._write_in_flight = True
        self.state = SettingsState.SUBMITTING
        self.notice = None
        try:
            await self.repository.apply_update(
                self.user_id,
                profile_updates=changes.profile,
                stats_updates=changes.stats,
            )
        except WriteError as e:
            logger.error("Update failed for user %s: %s", self.user_id, e)
            message = f"Update failed: {e}"
            if not self._is_stale(generation):
                self.state = SettingsState.READY
                self.notice = Notice(kind="error", message=message)
            return SubmitResult(SubmitOutcome.FAILED, message)
        except Exception:
            logger.exception("Unexpected error saving settings for user %s", self.user_id)
            message = "Update failed: unexpected error while saving."
            if not self._is_stale(generation):
                self.state = SettingsState.READY
                self.notice = Notice(kind="error", message=message)
            return SubmitResult(SubmitOutcome.FAILED, message)
        finally:
            self._write_in_flight = False

        # The data changed even if the page went away, so shared views still refresh.
        for name in INVALIDATED_VIEWS:
            self.cache.invalidate(query_key(name, self.user_id))
        try:
            await self.profile_store.refresh_profile(self.user_id)
        except Exception:
            logger.exception("Profile refresh failed for user %s after saving", self.user_id)

        message = "Profile updated successfully!"
        if self._is_stale(generation):
            return SubmitResult(SubmitOutcome.SAVED, message)

        if await self.load() == SettingsState.READY:
            self.notice = Notice(kind="success", message=message)
        return SubmitResult(SubmitOutcome.SAVED, message)

    def close(self) -> None:
        """Unmount: results of calls still pending are dropped."""
        self._closed = True
        self._generation += 1

    def view(self) -> SettingsView:
        goals = self.snapshot.goals if self.snapshot else []
        return SettingsView(
            user_id=self.user_id,
            state=self.state.value,
            error=self.error,
            notice=self.notice,
            form=self.form,
            bmi_preview=self.bmi_preview,
            goals=[summarize_goal(g) for g in goals[:GOALS_PREVIEW_LIMIT]],
            total_goals=len(goals),
            equipment_options=EQUIPMENT_OPTIONS,
            gender_options=GENDER_OPTIONS,
        )
