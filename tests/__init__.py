"""
Tests for Account Events

Tests are organized by component:
- test_aggregate.py: Event buffering on the Account aggregate
- test_dispatcher.py: Listener registry and dispatch
- test_unit_of_work.py: Commit sequence against a real SQLite session
- test_listeners.py: Listeners and the integration event publisher
- test_accounts_api.py: HTTP endpoints end to end
"""
