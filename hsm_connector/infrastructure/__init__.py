"""External collaborators of the connector."""
