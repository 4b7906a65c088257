from fitprofile.models.goal import Goal, GoalWorkoutPlan, WorkoutTemplate
from fitprofile.models.physical_stats import PhysicalStats
from fitprofile.models.profile import Profile

__all__ = [
    "Goal",
    "GoalWorkoutPlan",
    "PhysicalStats",
    "Profile",
    "WorkoutTemplate",
]
