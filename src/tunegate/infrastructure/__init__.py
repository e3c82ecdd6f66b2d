"""Infrastructure layer - persistence, provider integration, observability, lifecycle."""
