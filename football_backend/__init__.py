"""Football league backend: fantasy scoring, squad rules and league standings."""
