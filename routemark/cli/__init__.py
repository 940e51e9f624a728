"""
routemark command line.

Usage:
    routemark routes myapp.controllers
    routemark routes myapp.controllers:UsersController myapp.health:Health
    routemark serve myapp.main:router --port 8080
"""

__cli_name__ = "routemark"
