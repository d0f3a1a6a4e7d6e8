"""Infrastructure: configuration, database and external service clients."""
