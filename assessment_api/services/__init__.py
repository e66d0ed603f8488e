"""Service layer: database access, live sessions and external clients."""
