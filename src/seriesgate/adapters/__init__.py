"""Adapters connecting the domain ports to storage backends."""
