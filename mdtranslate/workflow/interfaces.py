# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from abc import ABC, abstractmethod


class DocumentStore(ABC):
    """Where documents are read from and where accepted translations are written to."""

    @abstractmethod
    def read(self, identifier: str) -> str: ...

    @abstractmethod
    def write(self, identifier: str, content: str) -> str:
        """Persist content for identifier and return where it went."""
        ...

    @abstractmethod
    def exists(self, identifier: str) -> bool: ...
