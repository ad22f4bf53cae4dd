"""Two-space word memory and the memory image format."""
