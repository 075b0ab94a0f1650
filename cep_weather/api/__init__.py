"""HTTP layer: routes and exception handlers for both services."""
