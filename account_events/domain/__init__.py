"""
Domain layer - Business logic and domain models.

This layer contains:
- Value objects (immutable, self-validating)
- Aggregates (buffer the events raised by their own mutations)
- Domain events
- Unit of Work (collects, dispatches and persists on commit)

No dependencies on FastAPI or HTTP concerns.
"""
