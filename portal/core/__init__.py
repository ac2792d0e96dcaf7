"""Core utilities and shared application primitives.

Form validation and submission, session handling, outbound request hooks
and the route guard live here. Modules in this package should stay
independent of individual routes.
"""
