# Copyright (c) Syntropy Systems
"""Data models for survboard."""
