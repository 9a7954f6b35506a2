"""Cross-cutting building blocks: settings, logging and the Result type."""
