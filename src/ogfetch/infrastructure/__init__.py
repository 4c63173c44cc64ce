"""Infrastructure layer: HTTP provider, cache, filesystem, workspace."""
