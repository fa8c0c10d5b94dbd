"""MIME entities and transfer codecs."""
