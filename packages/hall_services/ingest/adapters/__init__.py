"""Per-format line parsers producing raw records and line errors."""
