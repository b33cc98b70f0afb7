"""Tuoi Tre crawler - ingests the latest news articles into an article store."""
