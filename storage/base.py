"""
Sink interface. Whatever the collector hands records to.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from models import Contact


class Sink(ABC):
    """
    Contract:
    - write() is called from one thread only (the collector).
    - Append-only. Every call stores one row, duplicates included.
    - `epoch` is the run's start time, the same for every record of a run.
    - Failures raise SinkError.
    """

    @abstractmethod
    def write(self, contact: Contact, epoch: datetime) -> None:
        ...

    def write_many(self, contacts: list[Contact], epoch: datetime) -> int:
        """Write a batch. Returns count written."""
        for contact in contacts:
            self.write(contact, epoch)
        return len(contacts)
