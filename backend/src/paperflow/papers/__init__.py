"""Paper workflow application layer: services, schemas and HTTP routes."""
