# AI-driven talent mapping: assessment session, scoring, encrypted persistence
# and result retrieval.

__version__ = "0.1.0"
