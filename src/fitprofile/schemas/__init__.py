from fitprofile.schemas.goal import GoalRead, LinkedPlan
from fitprofile.schemas.profile import (
    EQUIPMENT_OPTIONS,
    GENDER_OPTIONS,
    Equipment,
    ProfileRead,
    ProfileUpdate,
)
from fitprofile.schemas.settings import (
    FormEdit,
    GoalSummary,
    Notice,
    SettingsForm,
    SettingsSnapshot,
    SettingsView,
)
from fitprofile.schemas.stats import PhysicalStatsRead, StatsUpdate

__all__ = [
    "EQUIPMENT_OPTIONS",
    "Equipment",
    "FormEdit",
    "GENDER_OPTIONS",
    "GoalRead",
    "GoalSummary",
    "LinkedPlan",
    "Notice",
    "PhysicalStatsRead",
    "ProfileRead",
    "ProfileUpdate",
    "SettingsForm",
    "SettingsSnapshot",
    "SettingsView",
    "StatsUpdate",
]
