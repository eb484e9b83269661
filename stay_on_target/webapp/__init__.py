"""Flask web interface for Stay on Target."""
