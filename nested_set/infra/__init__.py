"""Infrastructure: logging and database plumbing."""
