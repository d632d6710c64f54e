"""Category collection storage."""
