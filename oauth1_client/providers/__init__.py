"""Provider-specific helpers built on AuthorizationSession."""
