"""HTTP API for deposit address allocation."""
