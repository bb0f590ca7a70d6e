"""Engine backend plugins, registered with the hydra ConfigStore on import."""

from importlib import import_module
from pathlib import Path

PLUGIN_TYPES = ("engines",)


def register_plugins() -> list[str]:
    """Import every plugin module so its configs are stored.

    Returns:
        Names of the imported plugin modules
    """
    registered: list[str] = []
    for plugin_type in PLUGIN_TYPES:
        plugin_dir = Path(__file__).parent / plugin_type
        for item in sorted(plugin_dir.iterdir()):
            # Modules and packages, skipping private files
            if item.name.startswith("_"):
                continue
            if item.is_file() and item.suffix == ".py":
                name = f"plugins.{plugin_type}.{item.stem}"
            elif item.is_dir() and (item / "__init__.py").exists():
                name = f"plugins.{plugin_type}.{item.name}"
            else:
                continue
            import_module(name)
            registered.append(name)
    return registered
