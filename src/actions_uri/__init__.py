"""
Actions URI - note actions over a URI-callback scheme and a local HTTP listener.
This package routes named actions (create, read, append, rename a note, ...),
validates and normalizes their parameters, resolves which note a request
targets and encodes the result back to the caller, either as a JSON body or
as an x-callback-url.

This version uses synchronous operations.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("actions-uri")
except PackageNotFoundError:
    __version__ = "1.0.0"
