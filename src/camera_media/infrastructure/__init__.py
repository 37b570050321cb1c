"""Infrastructure layer: configuration, media processing and observability."""
