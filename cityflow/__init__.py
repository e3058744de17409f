"""CityFlow - AI travel itinerary planning backend."""

__version__ = "0.1.0"
