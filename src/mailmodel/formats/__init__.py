"""Wire formats of the message model."""
