"""Captain's Log: a voice journal backend."""

__version__ = "0.1.0"
