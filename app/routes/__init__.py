"""Blueprints for the invoice dashboard.

Each sibling module defines one blueprint (``auth``, ``main``, ``invoice``
and ``customer``); they are registered in :func:`app.create_app`.
"""
