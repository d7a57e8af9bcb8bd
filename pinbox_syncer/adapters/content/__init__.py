"""Web page retrieval and content checks."""
