"""Business logic services for the HireOS API."""
