"""Legacy source readers and per-format parsers."""
