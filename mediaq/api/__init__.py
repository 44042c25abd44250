"""HTTP upload API (optional, requires the api extra)."""
