"""storyprobe: validation, repair and playthrough simulation for branching stories."""

__version__ = "0.3.0"
