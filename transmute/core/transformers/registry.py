"""
Transformer registry for resolving transformer identifiers to classes.
"""

from typing import Any, Dict, List, Optional, Type

from transmute.core.exceptions import TransformerError
from transmute.core.transformers.base import BaseTransformer
from transmute.utils.imports import import_string


class TransformerRegistry:
    """
    Registry mapping short names to transformer classes.

    Identifiers that are not registered are treated as dotted import paths,
    so queued jobs can always rebuild their transformer from its identity.
    """

    def __init__(self):
        self._transformers: Dict[str, Type[BaseTransformer]] = {}

    def register(
        self, transformer_class: Type[BaseTransformer], name: Optional[str] = None
    ) -> Type[BaseTransformer]:
        """
        Register a transformer class under `name` or its registry_name().

        Returns the class so this can be used as a decorator.

        Raises:
            ValueError: If name is already registered or transformer_class is invalid
        """
        if not (isinstance(transformer_class, type) and issubclass(transformer_class, BaseTransformer)):
            raise ValueError(
                f"Transformer class must inherit from BaseTransformer, got {transformer_class}"
            )

        name = name or transformer_class.registry_name()
        if name in self._transformers:
            raise ValueError(f"Transformer '{name}' is already registered")

        self._transformers[name] = transformer_class
        return transformer_class

    def unregister(self, name: str) -> None:
        if name not in self._transformers:
            raise KeyError(f"Transformer '{name}' is not registered")

        del self._transformers[name]

    def resolve(self, identifier: str) -> Type[BaseTransformer]:
        """
        Find the class for a registered name or a dotted import path.

        Raises:
            KeyError: If the identifier is neither registered nor importable
        """
        if identifier in self._transformers:
            return self._transformers[identifier]

        if "." not in identifier:
            raise KeyError(f"Transformer '{identifier}' is not registered")

        try:
            transformer_class = import_string(identifier)
        except ImportError as e:
            raise KeyError(f"Transformer '{identifier}' cannot be imported: {e}") from e

        if not (isinstance(transformer_class, type) and issubclass(transformer_class, BaseTransformer)):
            raise KeyError(f"'{identifier}' is not a BaseTransformer subclass")
        return transformer_class

    def create_transformer(
        self, name: str, config: Optional[Dict[str, Any]] = None
    ) -> BaseTransformer:
        """
        Create a transformer instance by name or import path.

        Raises:
            KeyError: If the transformer cannot be resolved
            TransformerError: If transformer creation fails
        """
        transformer_class = self.resolve(name)

        try:
            return transformer_class(**(config or {}))
        except Exception as e:
            raise TransformerError(
                f"Failed to create transformer '{name}': {e}", context={"transformer": name}
            ) from e

    def is_registered(self, name: str) -> bool:
        return name in self._transformers

    def list_transformers(self) -> List[str]:
        return list(self._transformers.keys())

    def clear(self) -> None:
        self._transformers.clear()


# Global transformer registry instance
registry = TransformerRegistry()
