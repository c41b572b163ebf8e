"""Report persistence and readers."""
