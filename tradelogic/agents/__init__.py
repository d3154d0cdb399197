"""Request composition and the two model-backed operations (analysis, consistency)."""
