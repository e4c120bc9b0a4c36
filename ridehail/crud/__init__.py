"""Data access for trips and ratings."""
