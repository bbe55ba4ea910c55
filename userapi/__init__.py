"""User CRUD service: validation, filtering and soft-delete storage behind a FastAPI boundary."""
