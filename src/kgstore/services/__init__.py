"""Service layer: storage operations wrapped in ServiceResult for the CLI."""
