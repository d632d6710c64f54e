"""HTTP API for PhotoSort-AI."""
