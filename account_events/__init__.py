"""Account Events - domain events raised by aggregates and dispatched on commit."""
