"""Point-by-point table tennis match tracking backend."""
