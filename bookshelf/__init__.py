"""Little Library: a personal bookshelf backed by a single JSON document."""
