"""HTTP surface for TeamTask Core."""
