"""
Gathers the item tree end-points by topics.
"""

# relative
from .items import router as router_items
from .memberships import router as router_memberships
