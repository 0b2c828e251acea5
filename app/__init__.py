"""
Application package containing configuration, persistence, and service layers
for the Flashdeck FastAPI project.
"""

__all__ = [
    "config",
    "time_utils",
    "db",
    "repositories",
    "services",
    "schemas",
]
