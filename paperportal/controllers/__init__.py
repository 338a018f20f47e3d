"""
Request controllers for the portal API.

Controllers return a ``(data, status, headers)`` tuple, and raise
:mod:`werkzeug.exceptions` for failures. Exceptions raised by services are
translated here, so each failure reaches the route as exactly one kind.
"""
