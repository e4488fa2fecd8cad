# relative
from .interfaces import StorageInterface, StorageSession
from .local_storage import LocalStorage, LocalStorageSession
