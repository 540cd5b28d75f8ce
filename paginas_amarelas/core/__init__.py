"""Core infrastructure: configuration, database and tracing."""
