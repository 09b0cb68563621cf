"""
Hook discovery from built-in, project, plugin and user sources.

Each source produces ``HookModuleDescriptor`` records; nothing is imported
until a descriptor is loaded:

- core: ``*_hook.py`` modules shipped in this package
- project: ``<project>/.claude/hooks/*_hook.py`` (or ``*-hook.py``)
- plugin: installed distributions named like ``*claude-hook*`` that the
  project depends on, declaring entry points in the ``claude_githooks.hooks``
  group (entry point name = hook id, value = ``module:attr``)
- user: ``<project>/.claude/user-hooks/*_hook.py``

``discover_all_hooks`` returns core, project, plugin and user descriptors
in that order. Registering them in order lets later sources shadow
earlier ones with the same id.

A hook module file exposes its class as ``HOOK_CLASS``:

    class ReleaseNotesHook(BaseHook):
        git_hook_name = "post-merge"
        ...

    HOOK_CLASS = ReleaseNotesHook

Discovery never raises: unreadable directories and manifests are logged
and contribute nothing.
"""

from __future__ import annotations

import importlib
import importlib.metadata
import importlib.util
import logging
import re
import sys
import tomllib
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any

from claude_githooks.core.hooks.errors import DiscoveryError
from claude_githooks.core.hooks.models import HookModuleDescriptor, HookSource

logger = logging.getLogger(__name__)

PLUGIN_ENTRY_POINT_GROUP = "claude_githooks.hooks"
PLUGIN_NAME_MARKERS = ("claude-hook", "claude-git-hook")
HOOK_FILE_SUFFIXES = ("_hook.py", "-hook.py")

CORE_HOOKS_PACKAGE = "claude_githooks.core.hooks"
CORE_HOOKS_DIR = Path(__file__).parent

# Framework modules that are not hook implementations
INFRASTRUCTURE_FILES = frozenset(
    {
        "__init__.py",
        "base_hook.py",
        "compat.py",
        "config.py",
        "discovery.py",
        "errors.py",
        "installer.py",
        "interfaces.py",
        "logger.py",
        "middleware.py",
        "models.py",
        "registry.py",
        "runner.py",
        "schema.py",
    }
)

DistributionLoader = Callable[[str], Any]


@dataclass(frozen=True)
class LoadedHookModule:
    """A descriptor paired with the hook class it resolved to."""

    descriptor: HookModuleDescriptor
    hook_class: type


def is_hook_filename(filename: str) -> bool:
    return not filename.startswith(".") and filename.endswith(HOOK_FILE_SUFFIXES)


def hook_id_from_filename(filename: str) -> str:
    """
    Infer a hook id from its module filename.

    Example:
        >>> hook_id_from_filename("commit_msg_hook.py")
        'commit-msg'
        >>> hook_id_from_filename("commit-msg-hook.py")
        'commit-msg'
    """
    for suffix in HOOK_FILE_SUFFIXES:
        if filename.endswith(suffix):
            filename = filename[: -len(suffix)]
            break
    return filename.replace("_", "-")


def _load_class_from_file(path: Path, source: HookSource) -> Any:
    module_name = f"claude_githooks_{source.value}_hooks.{path.stem.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return getattr(module, "HOOK_CLASS", None)


def _load_class_from_module(module_name: str) -> Any:
    return getattr(importlib.import_module(module_name), "HOOK_CLASS", None)


def _scan_directory(
    directory: Path,
    source: HookSource,
    exclude: Iterable[str] = (),
    package: str | None = None,
) -> list[HookModuleDescriptor]:
    """Descriptors for hook files directly inside ``directory``."""
    if not directory.is_dir():
        logger.debug("No %s hooks directory at %s", source.value, directory)
        return []

    excluded = set(exclude)
    descriptors: list[HookModuleDescriptor] = []
    try:
        for path in sorted(directory.iterdir(), key=lambda p: p.name):
            if not path.is_file() or not is_hook_filename(path.name) or path.name in excluded:
                continue

            if package is not None:
                resolver = partial(_load_class_from_module, f"{package}.{path.stem}")
            else:
                resolver = partial(_load_class_from_file, path, source)

            stat = path.stat()
            descriptors.append(
                HookModuleDescriptor(
                    id=hook_id_from_filename(path.name),
                    name=path.name,
                    path=str(path),
                    source=source,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    size=stat.st_size,
                    resolver=resolver,
                )
            )
    except OSError as e:
        logger.error("Failed to scan %s hooks in %s: %s", source.value, directory, e)

    return descriptors


def discover_core_hooks(hooks_dir: Path | None = None) -> list[HookModuleDescriptor]:
    """Built-in hook kinds shipped with the framework."""
    if hooks_dir is None:
        return _scan_directory(
            CORE_HOOKS_DIR, HookSource.CORE, INFRASTRUCTURE_FILES, package=CORE_HOOKS_PACKAGE
        )
    return _scan_directory(Path(hooks_dir), HookSource.CORE, INFRASTRUCTURE_FILES)


def discover_project_hooks(project_root: Path) -> list[HookModuleDescriptor]:
    """Hooks committed with the project under ``.claude/hooks/``."""
    return _scan_directory(Path(project_root) / ".claude" / "hooks", HookSource.PROJECT)


def discover_user_hooks(project_root: Path) -> list[HookModuleDescriptor]:
    """Personal hooks under ``.claude/user-hooks/``."""
    return _scan_directory(Path(project_root) / ".claude" / "user-hooks", HookSource.USER)


_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def normalize_package_name(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


def requirement_name(requirement: str) -> str | None:
    """Distribution name of a PEP 508 requirement string."""
    match = _REQUIREMENT_NAME.match(requirement)
    return match.group(1) if match else None


def is_plugin_package(name: str) -> bool:
    normalized = normalize_package_name(name)
    return any(marker in normalized for marker in PLUGIN_NAME_MARKERS)


def _table(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _requirement_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def collect_dependencies(manifest: dict[str, Any]) -> list[str]:
    """
    Union of dependency names declared in a pyproject manifest.

    Reads ``[project].dependencies``, every ``[project.optional-dependencies]``
    list and every ``[dependency-groups]`` list, in that order, without
    duplicates. Tables and lists of the wrong shape contribute nothing.
    """
    project = _table(manifest.get("project"))
    requirements: list[Any] = list(_requirement_list(project.get("dependencies")))
    for extra in _table(project.get("optional-dependencies")).values():
        requirements.extend(_requirement_list(extra))
    for group in _table(manifest.get("dependency-groups")).values():
        requirements.extend(_requirement_list(group))

    names: list[str] = []
    seen: set[str] = set()
    for requirement in requirements:
        if not isinstance(requirement, str):
            # e.g. {include-group = "..."} tables
            continue
        name = requirement_name(requirement)
        if name is None or normalize_package_name(name) in seen:
            continue
        seen.add(normalize_package_name(name))
        names.append(name)
    return names


def _plugin_descriptors(
    package: str, distribution_loader: DistributionLoader
) -> list[HookModuleDescriptor]:
    dist = distribution_loader(package)
    entry_points = [ep for ep in dist.entry_points if ep.group == PLUGIN_ENTRY_POINT_GROUP]
    if not entry_points:
        logger.debug("Plugin package %s declares no hooks", package)
        return []

    summary = dist.metadata.get("Summary") if dist.metadata is not None else None
    description = summary or f"Hook from {package} package"

    descriptors = []
    for ep in entry_points:
        if not ep.name or ":" not in ep.value:
            raise DiscoveryError(
                f"Malformed hook entry point {ep.name!r} = {ep.value!r} in {package}"
            )
        descriptors.append(
            HookModuleDescriptor(
                id=ep.name,
                name=ep.name,
                path=ep.value,
                source=HookSource.PLUGIN,
                description=description,
                version=dist.version,
                resolver=ep.load,
            )
        )
    return descriptors


def discover_plugin_hooks(
    project_root: Path,
    distribution_loader: DistributionLoader | None = None,
) -> list[HookModuleDescriptor]:
    """
    Hooks declared by plugin packages the project depends on.

    A package with no entry points in the hook group contributes nothing.
    A package that is missing or declares a malformed entry is skipped
    with a warning.
    """
    loader = distribution_loader or importlib.metadata.distribution
    manifest_path = Path(project_root) / "pyproject.toml"
    if not manifest_path.exists():
        logger.debug("No pyproject.toml at %s, skipping plugin discovery", project_root)
        return []

    try:
        with manifest_path.open("rb") as f:
            manifest = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.error("Failed to read %s: %s", manifest_path, e)
        return []

    descriptors: list[HookModuleDescriptor] = []
    for package in collect_dependencies(manifest):
        if not is_plugin_package(package):
            continue
        try:
            descriptors.extend(_plugin_descriptors(package, loader))
        except importlib.metadata.PackageNotFoundError:
            logger.warning("Plugin package %s is declared but not installed", package)
        except (DiscoveryError, OSError, ValueError) as e:
            logger.warning("Failed to load plugin %s: %s", package, e)
        except Exception as e:
            # Distribution metadata is third-party and may have any shape
            logger.error("Unexpected error reading plugin %s: %s", package, e)

    return descriptors


def discover_all_hooks(
    project_root: Path,
    *,
    core_dir: Path | None = None,
    distribution_loader: DistributionLoader | None = None,
) -> list[HookModuleDescriptor]:
    """All descriptors in precedence order: core, project, plugin, user."""
    return [
        *discover_core_hooks(core_dir),
        *discover_project_hooks(project_root),
        *discover_plugin_hooks(project_root, distribution_loader),
        *discover_user_hooks(project_root),
    ]


def load_hook_module(descriptor: HookModuleDescriptor) -> type | None:
    """
    Resolve a descriptor to its hook class.

    Returns None (with a warning) when the module cannot be imported or
    does not expose a class as ``HOOK_CLASS``.
    """
    resolver = descriptor.resolver
    if resolver is None:
        resolver = partial(_load_class_from_file, Path(descriptor.path), descriptor.source)

    try:
        hook_class = resolver()
    except Exception as e:
        # Hook modules are trusted code; any import failure skips the hook
        logger.warning("Failed to load hook module %s: %s", descriptor.path, e)
        return None

    if not isinstance(hook_class, type):
        logger.warning("No HOOK_CLASS found in %s, skipping", descriptor.path)
        return None
    return hook_class


def load_all_hook_modules(descriptors: Iterable[HookModuleDescriptor]) -> list[LoadedHookModule]:
    loaded = []
    for descriptor in descriptors:
        hook_class = load_hook_module(descriptor)
        if hook_class is not None:
            loaded.append(LoadedHookModule(descriptor=descriptor, hook_class=hook_class))
    return loaded
