"""Infrastructure helpers: current-user identity and the HTTP transport."""
