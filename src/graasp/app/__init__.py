"""
Standalone deployment of the item tree service, started using the `graasp` command.
"""
