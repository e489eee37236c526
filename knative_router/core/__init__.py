"""Registry, address resolution and pipeline primitives."""
