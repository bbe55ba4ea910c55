"""
Persistence adapters.

These modules encapsulate how users are stored/retrieved (in memory or in a
relational database). Services depend on the UserRepository interface from
``base`` rather than on a concrete backend.
"""
