"""Domain modules - plans, profiles and feedback."""
