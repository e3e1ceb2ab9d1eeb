"""Infrastructure layer: configuration helpers, logging and storage."""
