"""Plan domain - trips, fixed points, AI itineraries and PDF export."""
