"""
Application Layer for the Guild Progression API.

This package contains:
- ports/: Abstract repository interfaces (what the progression engine needs)
- use_cases/: Workflows coordinating the engine and the repositories
- exceptions: Errors raised by the engine and translated by the API layer
"""
