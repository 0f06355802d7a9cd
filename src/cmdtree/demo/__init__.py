"""Example application showing the framework end to end."""
