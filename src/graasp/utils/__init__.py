"""
This module defines the helping utilities shared by the Graasp backends: tracing context, exceptions,
JSON helpers and middlewares.

"""

# relative
from .context import *
from .exceptions import *
from .types import *
from .utils import *
