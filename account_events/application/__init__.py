"""
Application layer - Use cases and event dispatch.

This layer contains:
- Use case implementations (AccountService)
- The domain event dispatcher and its listener registry
- Domain event listeners (side effects triggered on commit)

No direct dependencies on frameworks (FastAPI, etc.)
"""
