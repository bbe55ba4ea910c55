"""
High-level use cases for the user service.

Service modules orchestrate domain rules and repositories (decode, validate,
store). Routers call these services instead of touching a repository
directly.
"""
