"""Purchase orders committed from equipment lists."""
