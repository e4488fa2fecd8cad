# relative
from .root_middleware import RootMiddleware
