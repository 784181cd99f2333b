"""contentkit — content index, redirect validation and image-registry tooling."""

__version__ = "0.3.0"
