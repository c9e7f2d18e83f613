"""In-memory stand-ins for the APIs under test."""
