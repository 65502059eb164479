"""Transports: the shared dispatcher, the URI-callback front door and the HTTP listener."""
