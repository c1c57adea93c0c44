"""Business modules for the TimeBack AI service.

Each module is self-contained with its own schemas, services, routes and
domain logic. Shared provider and cache plumbing lives in
``src.infrastructure``.
"""
