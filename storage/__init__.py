from storage.db import Storage
from storage.base import Sink

__all__ = ["Storage", "Sink"]
