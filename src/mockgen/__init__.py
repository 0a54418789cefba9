"""
MockGen

Discovers HTTP endpoints in a source tree, generates plausible mock
responses for them, and serves those mocks from a local HTTP server.
"""

__version__ = '1.0.0'
