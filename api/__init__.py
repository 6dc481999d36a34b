"""HTTP API for the Dress Studio."""
