"""Kernel layer: the tool surface exposed to dispatchers."""
