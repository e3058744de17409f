"""Profile domain - user preferences and generation credits."""
