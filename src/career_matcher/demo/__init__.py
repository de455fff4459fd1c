"""Sample data for demos and local experiments."""

from .postings import sample_postings

__all__ = ["sample_postings"]
