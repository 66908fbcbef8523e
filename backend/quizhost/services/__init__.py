"""Domain services: the match engine, setup checks, config mirroring,
partition synchronization and the host-local question bank.

Imported by HTTP routes and socket handlers, keeping transport concerns
separated from the match rules.
"""
