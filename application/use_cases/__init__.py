"""
Application Use Cases for the Guild Progression API.

This package contains application-level use cases that orchestrate the
progression engine and coordinate between ports/adapters. Use cases are the
entry points for business operations and contain the application's workflow
logic.

Architecture follows Clean Architecture / Hexagonal pattern:
- Use cases orchestrate domain objects and repository ports
- Dependencies are injected via constructors for testability
- Use cases return domain models, not API responses

Usage:
    from application.use_cases import CompleteWorkoutUseCase, WorkoutSummary

    use_case = CompleteWorkoutUseCase(
        users=user_repo,
        sessions=session_repo,
        daily_reset=daily_reset_service,
    )
    result = use_case.execute("user-123", WorkoutSummary(duration_minutes=45))
"""

from application.use_cases.complete_workout import (
    CompleteWorkoutResult,
    CompleteWorkoutUseCase,
    DetailedWorkout,
    WorkoutSummary,
)

__all__ = [
    "CompleteWorkoutUseCase",
    "CompleteWorkoutResult",
    "DetailedWorkout",
    "WorkoutSummary",
]
