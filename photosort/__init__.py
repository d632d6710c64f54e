"""PhotoSort-AI: sort photos into category folders."""
