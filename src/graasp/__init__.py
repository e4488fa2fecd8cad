"""
Hierarchical item tree and membership-based authorization of Graasp.

The engine lives in :mod:`graasp.backends.tree`, the ambient utilities (tracing context, exceptions,
middlewares) in :mod:`graasp.utils`.
"""
