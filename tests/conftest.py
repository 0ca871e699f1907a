import logging
import sys
from collections.abc import Mapping
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from docassembler.ingest.json_io import save_configuration  # noqa: E402
from docassembler.model.config import (  # noqa: E402
    DEFAULT_CONFIG_FILENAME,
    AssembleConfiguration,
    default_configuration,
)

GETTING_STARTED = (
    "# Getting Started\n"
    "\n"
    "EXTERNAL: [.docassemble.json](../../.docassemble.json)\n"
    "WEBLINK: [Microsoft](https://www.microsoft.com)\n"
    "RESOURCE: ![computer](assets/computer.jpg)\n"
    "PARENT-DOC: [Docs readme](../README.md)\n"
    "RELATIVE-DOC: [Documentation guidelines](../guidelines/documentation-guidelines.md)\n"
    "ANOTHER-SUBFOLDER-DOC: [.NET guidelines](../guidelines/dotnet-guidelines.md)\n"
    "ANOTHER-DOCS-TREE: [System Copilot](../../tools/system-copilot/docs/README.md#usage)\n"
    "ANOTHER-DOCS-TREE-BACKSLASH: [System Copilot](..\\..\\tools\\system-copilot\\docs\\README.md#usage)\n"
)

DOCUMENTATION_GUIDELINES = (
    "# Documentation Guidelines\n"
    "\n"
    "See the [.NET guidelines](dotnet-guidelines.md) as well.\n"
    "\n"
    "STANDARD: AB#1234 reference\n"
    "\n"
    "EMPTY-LINK: [AB#1000]() is okay.\n"
)

DEMO_FILES: dict[str, str] = {
    ".docfx/docfx.json": '{ "build": { "content": [ { "files": [ "**/*.md" ] } ] } }\n',
    ".docfx/index.md": "# Index\n\n![keyboard](images/keyboard.jpg)\n\n[Setup](./general/getting-started/README.md)\n",
    ".docfx/toc.yml": "- name: General\n  href: general/\n- name: Services\n  href: services/\n",
    ".docfx/images/keyboard.jpg": "jpg",
    "docs/README.md": "# Docs\n\n[Getting started](getting-started/README.md)\n",
    "docs/getting-started/README.md": GETTING_STARTED,
    "docs/getting-started/assets/computer.jpg": "jpg",
    "docs/guidelines/documentation-guidelines.md": DOCUMENTATION_GUIDELINES,
    "docs/guidelines/dotnet-guidelines.md": "# .NET Guidelines\n\n[Back](documentation-guidelines.md)\n",
    "shared/dotnet/MyLibrary/docs/README.md": (
        "# My Library\n"
        "\n"
        "Follow the [guidelines](../../../../docs/guidelines/dotnet-guidelines.md).\n"
        "The [logic](../src/MyLogic.cs) is in the sources.\n"
    ),
    "shared/dotnet/MyLibrary/src/MyLogic.cs": "public class MyLogic { }\n",
    "tools/system-copilot/docs/README.md": "# System Copilot\n\n## Usage\n\nStart the tool with `system-copilot`.\n",
    "tools/system-copilot/SRC/system-copilot.cs": "public class SystemCopilot { }\n",
    "backend/docs/README.md": "# Backend\n\n[App1](../app1/docs/README.md)\n",
    "backend/app1/docs/README.md": (
        "# App1\n\nUses [System Copilot](../../../tools/system-copilot/docs/README.md#usage).\n"
    ),
    "backend/app1/src/app1.cs": "public class App1 { }\n",
    "backend/subsystem1/docs/explain-subsystem.md": "# Subsystem 1\n",
    "backend/subsystem1/app20/docs/README.md": (
        "# App20\n\nPart of [the subsystem](../../docs/explain-subsystem.md).\n\nCode: [app20](../src/app20.cs)\n"
    ),
    "backend/subsystem1/app20/src/app20.cs": "public class App20 { }\n",
    "backend/subsystem1/app30/docs/README.md": (
        "# App30\n\nUses [MyLibrary](../../../../shared/dotnet/MyLibrary/docs/README.md).\n"
    ),
    "backend/subsystem1/app30/src/app30.cs": "public class App30 { }\n",
}


def make_tree(root: Path, files: Mapping[str, str]) -> Path:
    """Write ``files`` (relative path -> content) below root, without newline translation."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    return root


def posix(path: Path) -> str:
    return str(path).replace("\\", "/")


def write_config(root: Path, config: AssembleConfiguration) -> Path:
    path = root / DEFAULT_CONFIG_FILENAME
    save_configuration(path, config)
    return path


@pytest.fixture
def demo_tree(tmp_path: Path) -> Path:
    """A documentation repository with docs spread over several folders."""
    return make_tree(tmp_path / "repo", DEMO_FILES)


@pytest.fixture
def standard_config() -> AssembleConfiguration:
    return default_configuration()


@pytest.fixture
def isolate_logging():
    """Isolate logging configuration between tests.

    The CLI installs a RichHandler on the root logger bound to the stderr of
    the CliRunner invocation. Without cleanup that handler outlives the test.
    """
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level

    logging.root.handlers.clear()
    logging.root.addHandler(logging.NullHandler())

    yield

    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)
