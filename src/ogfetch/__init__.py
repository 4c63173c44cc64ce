"""Fetch OpenGraph metadata into Markdown frontmatter."""

__version__ = "0.3.0"
