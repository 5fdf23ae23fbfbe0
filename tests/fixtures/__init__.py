"""
Test fixtures package for the sealed message registry.

Import factories directly from the modules:
    from fixtures.common import make_address, make_message
"""
