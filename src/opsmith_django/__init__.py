"""Django request-routing layer for opsmith."""
