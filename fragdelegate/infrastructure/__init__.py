"""Infrastructure layer: fragmentation, backends, retry."""
