"""HTTP routes -- run, models, health."""
