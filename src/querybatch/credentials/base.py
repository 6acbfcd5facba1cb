from abc import ABC, abstractmethod
from typing import Any, Dict


class CredentialProvider(ABC):
    """Source of the flat settings dict consumed by `Configuration.from_credentials`."""

    @abstractmethod
    def get_credentials(self) -> Dict[str, Any]:
        raise NotImplementedError("Subclasses must implement get_credentials")
