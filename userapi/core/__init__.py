"""
Core utilities shared across the user service.

This package hosts configuration helpers (env vars, storage selection) and
cross-cutting concerns such as logging and the request log middleware.
Routers and repositories depend on these primitives instead of reading the
environment themselves.
"""
