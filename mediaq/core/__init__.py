"""Core job pipeline: models, retry policy, producer, processor, poller."""
