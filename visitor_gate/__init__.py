"""Visitor gate: camera-based visitor recognition with appointment verification."""
