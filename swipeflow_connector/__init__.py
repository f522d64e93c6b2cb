"""SwipeFlow connector: workflow actions and webhook trigger for the SwipeFlow API."""

__version__ = "0.1.0"
