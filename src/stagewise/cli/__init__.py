# Copyright (c) Syntropy Systems
"""Command-line interface for stagewise."""
