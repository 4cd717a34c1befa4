"""Runtime helpers: environment, clock, serialization and structured logging."""
