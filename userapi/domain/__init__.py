"""
Domain rules for user records.

Modules here are pure: no storage, no HTTP. They define the User record, its
validation rules and the list filter, so repositories and routers can share a
single definition of what a valid user looks like.
"""
