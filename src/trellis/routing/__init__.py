"""Routing — pipelines, route matching, and hierarchical routers.

Routes are registered during setup and matched in registration order
by matching middleware installed on the router.
"""
