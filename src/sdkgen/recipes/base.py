"""Base recipe interface and registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from sdkgen.core.errors import ConfigurationError
from sdkgen.core.models import LinuxDistribution, PathsConfiguration, Toolset, Triple, TripleProperties

if TYPE_CHECKING:
    from sdkgen.build.sysroot import SysrootContext


class Recipe(ABC):
    """Abstract base class for SDK recipes.

    A recipe decides how the sysroot is obtained and which compiler and
    linker options end up in the generated descriptors. The two ``apply_*``
    hooks only mutate the value they are given.
    """

    name: str = ""

    @property
    @abstractmethod
    def distribution(self) -> LinuxDistribution:
        """Distribution the SDK targets, used for SDKSettings.json."""
        ...

    @abstractmethod
    def apply_toolset_options(self, toolset: Toolset, triple: Triple) -> None:
        """Fill in recipe-specific tool options of toolset.json."""
        ...

    @abstractmethod
    def apply_destination_options(
        self,
        metadata: TripleProperties,
        paths: PathsConfiguration,
        triple: Triple,
    ) -> None:
        """Fill in recipe-specific search and resource paths of swift-sdk.json."""
        ...

    @abstractmethod
    def default_artifact_id(self, triple: Triple) -> str:
        ...

    @abstractmethod
    def sdk_dir_name(self, triple: Triple) -> str:
        """Name of the ``<name>.sdk`` directory holding the sysroot."""
        ...

    @abstractmethod
    async def make_sysroot(self, context: SysrootContext) -> None:
        """Populate the SDK directory of ``context.paths``."""
        ...

    def validate_triple(self, triple: Triple) -> None:
        """Reject triples this recipe cannot build for. Default: accept all."""
        return None


# Recipe registry
_RECIPES: dict[str, type[Recipe]] = {}


def register_recipe(name: str):
    """Decorator to register a recipe class."""

    def wrapper(cls):
        cls.name = name
        _RECIPES[name] = cls
        return cls

    return wrapper


def get_recipe(name: str, **kwargs) -> Recipe:
    """Get an instantiated recipe by name."""
    if name not in _RECIPES:
        raise ConfigurationError(f"Unknown recipe: {name}. Available: {list(_RECIPES.keys())}")
    return _RECIPES[name](**kwargs)


def list_recipes() -> list[str]:
    """Names of all registered recipes."""
    return sorted(_RECIPES)
