"""HTTP API for the checkout platform."""
