"""
Test support utilities for diaspora tests.

Reference adapters live in :mod:`tests._support.adapters`; they are plain
classes (not fixtures) so tests can subclass them to inject behaviour.
"""
