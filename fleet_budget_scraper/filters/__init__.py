"""Fleet hierarchy used for roll-ups."""
