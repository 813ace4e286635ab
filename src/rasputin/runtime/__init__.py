"""Runtime helpers: environment parsing and structured logging."""
