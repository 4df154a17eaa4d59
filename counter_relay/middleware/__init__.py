"""HTTP middleware: request ids, access logging, error → JSON mapping."""
