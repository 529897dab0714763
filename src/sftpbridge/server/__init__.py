"""Server module - Gateway, sessions, transport and transfers."""
