"""Domain layer: frontmatter codec, metadata records, field planning."""
