"""Infrastructure adapters - implementations of the domain ports."""
