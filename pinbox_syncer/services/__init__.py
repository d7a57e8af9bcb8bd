"""Long-running background services."""
