"""Registry of named document models.

The application creates one registry, registers its models at start-up and
passes the registry to whatever needs to look a model up by name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from WeaveQuery.documents.model import DocumentModel


class SchemaRegistry:
    """Name to `DocumentModel` mapping with explicit lifecycle."""

    def __init__(self) -> None:
        self._models: dict[str, DocumentModel] = {}

    def add(self, name: str, model: DocumentModel) -> DocumentModel:
        """Register a model under `name`, replacing any previous one.

        Returns:
            The registered model.
        """
        if not name.strip():
            raise ValueError("Model name must not be empty")
        self._models[name] = model
        return model

    def get(self, name: str) -> DocumentModel:
        """Return the model registered under `name`.

        Raises:
            KeyError: If no model has that name.
        """
        try:
            return self._models[name]
        except KeyError:
            raise KeyError(f"No document model registered as {name!r}") from None

    def remove(self, name: str) -> None:
        self._models.pop(name, None)

    def names(self) -> tuple[str, ...]:
        """Registered names, in registration order."""
        return tuple(self._models)

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)
