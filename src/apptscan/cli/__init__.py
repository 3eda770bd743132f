"""Command-line tools for apptscan."""
