"""Invoice drafting, line-item pricing and lifecycle."""
