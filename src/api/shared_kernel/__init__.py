"""Components shared by the service's bounded contexts.

Holds the transactional outbox contracts and the observation context that
probes bind to their log lines.
"""
