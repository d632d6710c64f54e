"""Classification, identity and organization core."""
