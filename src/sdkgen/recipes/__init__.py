"""SDK recipes. Importing this package registers the built-in recipes."""

from sdkgen.recipes.base import Recipe, get_recipe, list_recipes, register_recipe
from sdkgen.recipes.linux import LinuxRecipe
from sdkgen.recipes.wasm import WebAssemblyRecipe

__all__ = [
    "LinuxRecipe",
    "Recipe",
    "WebAssemblyRecipe",
    "get_recipe",
    "list_recipes",
    "register_recipe",
]
