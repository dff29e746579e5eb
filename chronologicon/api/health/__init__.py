"""Health check resources for liveness and readiness checks."""
