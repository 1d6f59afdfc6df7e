"""Resource loader for the work-status command line tool.

This module loads Work records and the live objects of a spoke cluster from
YAML files on disk so a sync pass can be run without a cluster.

Key Characteristics:
- Accepts a single file or a directory of `.yaml`, `.yml` and `.json` files
- Documents of kind Work are parsed into Work records, every other object
  with an apiVersion, kind and name is treated as a spoke object
- Documents of kind List are expanded into their items
- Stateless, the loaded resources are returned to the caller
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

import aiofiles
import yaml

from .exceptions import InputException, WorkStatusException
from .manifest import Work, is_work

__all__ = ["LoadOptions", "LoadedResources", "load_resources"]

_LOGGER = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml", ".json")

# Type for YAML documents
document = dict[str, Any]


@dataclass
class LoadOptions:
    """Options for loading resources from the filesystem.

    Attributes:
        path: Filesystem path to load resources from. Can be a file or directory.
        recursive: If True and path is a directory, load resources from all
                  subdirectories as well.
    """

    path: Path
    recursive: bool = True

    def __post_init__(self) -> None:
        """Resolve the path after initialization."""
        self.path = Path(self.path).expanduser().resolve()


@dataclass
class LoadedResources:
    """Work records and spoke objects read from disk."""

    works: list[Work] = field(default_factory=list)

    objects: list[document] = field(default_factory=list)

    def extend(self, other: "LoadedResources") -> None:
        """Add the resources from another load."""
        self.works.extend(other.works)
        self.objects.extend(other.objects)


async def load_resources(options: LoadOptions) -> LoadedResources:
    """Load the Work records and spoke objects found at the path.

    Raises:
        WorkStatusException: If the path does not exist or a file is invalid.
    """
    _LOGGER.info("Loading resources from %s", options.path)
    if not options.path.exists():
        raise WorkStatusException(f"Path does not exist: {options.path}")
    resources = LoadedResources()
    for path in _iter_files(options.path, options.recursive):
        resources.extend(await _load_file(path))
    _LOGGER.info(
        "Loaded %d Works and %d spoke objects",
        len(resources.works),
        len(resources.objects),
    )
    return resources


def _iter_files(path: Path, recursive: bool) -> list[Path]:
    if path.is_file():
        return [path]
    files: list[Path] = []
    for entry in sorted(path.iterdir()):
        if entry.is_file() and entry.suffix.lower() in YAML_SUFFIXES:
            files.append(entry)
        elif recursive and entry.is_dir():
            files.extend(_iter_files(entry, recursive))
    return files


async def _load_file(path: Path) -> LoadedResources:
    _LOGGER.debug("Processing file: %s", path)
    try:
        async with aiofiles.open(str(path), encoding="utf-8") as content_file:
            content = await content_file.read()
    except OSError as err:
        raise WorkStatusException(f"Failed to read file {path}: {err}") from err

    try:
        docs = [doc for doc in yaml.safe_load_all(content) if doc]
    except yaml.YAMLError as err:
        raise WorkStatusException(f"Invalid YAML in file {path}: {err}") from err

    resources = LoadedResources()
    for doc in _expand_lists(docs):
        if not isinstance(doc, dict):
            _LOGGER.info("Skipping non-object document in %s", path)
            continue
        if is_work(doc):
            try:
                resources.works.append(Work.parse_doc(doc))
            except InputException as err:
                _LOGGER.info("Skipping Work in %s: %s", path, err)
            continue
        if not _is_object(doc):
            _LOGGER.info(
                "Skipping document in %s missing apiVersion, kind or name", path
            )
            continue
        resources.objects.append(doc)
    return resources


def _expand_lists(docs: list[Any]) -> list[Any]:
    result: list[Any] = []
    for doc in docs:
        if isinstance(doc, dict) and doc.get("kind") == "List":
            result.extend(doc.get("items") or ())
        else:
            result.append(doc)
    return result


def _is_object(doc: document) -> bool:
    metadata = doc.get("metadata")
    return bool(
        doc.get("apiVersion")
        and doc.get("kind")
        and isinstance(metadata, dict)
        and metadata.get("name")
    )
