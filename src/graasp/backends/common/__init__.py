# relative
from .app import get_fastapi_app
