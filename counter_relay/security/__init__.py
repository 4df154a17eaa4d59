"""HTTP-facing security helpers (CORS)."""
