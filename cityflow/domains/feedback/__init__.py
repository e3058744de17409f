"""Feedback domain - user ratings of generated plans."""
