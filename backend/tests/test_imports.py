"""Every application module imports cleanly and keeps builtin names usable in annotations."""
import importlib
import inspect
from pathlib import Path

import pytest

PACKAGE_ROOT = Path(__file__).resolve().parents[1] / "kol360"
MODULES = sorted(
    ".".join(path.relative_to(PACKAGE_ROOT.parent).with_suffix("").parts).removesuffix(".__init__")
    for path in PACKAGE_ROOT.rglob("*.py")
)
BUILTIN_TYPES = ("list", "dict", "set", "tuple", "type")


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    importlib.import_module(name)


@pytest.mark.parametrize("name", [m for m in MODULES if ".services." in m or ".routers." in m])
def test_classes_do_not_shadow_builtin_types(name):
    # A method named `list` breaks `list[...]` annotations later in the class body
    module = importlib.import_module(name)
    for _, cls in inspect.getmembers(module, inspect.isclass):
        if cls.__module__ != name:
            continue
        shadowed = [attr for attr in BUILTIN_TYPES if attr in vars(cls)]
        assert shadowed == [], f"{cls.__name__} defines {shadowed}"
