"""ETCE portal authentication backend."""
