"""Assembly configuration.

The configuration is read once per run and never mutated by the pipeline.
Group level replacement lists and the external file prefix override the
global values. A group list set to ``None`` inherits the global list, while
an empty list disables the global rules for that group.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_CONFIG_FILENAME = ".docassembler.json"


class ConfigurationError(ValueError):
    """Raised when a configuration cannot be read or is incomplete."""


@dataclass(frozen=True)
class Replacement:
    """A regular expression substitution rule."""

    expression: str
    value: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Replacement:
        expression = data.get("expression")
        if not isinstance(expression, str):
            raise ConfigurationError(f"Replacement without expression: {dict(data)!r}")
        value = data.get("value")
        if value is not None and not isinstance(value, str):
            raise ConfigurationError(f"Replacement value must be a string: {dict(data)!r}")
        return cls(expression=expression, value=value)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"expression": self.expression}
        if self.value is not None:
            data["value"] = self.value
        return data


def _replacements_from(raw: Any, where: str) -> tuple[Replacement, ...] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ConfigurationError(f"'{where}' must be a list of replacements")
    return tuple(Replacement.from_dict(item) for item in raw)


def _strings_from(raw: Any, where: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(x, str) for x in raw):
        raise ConfigurationError(f"'{where}' must be a list of strings")
    return tuple(raw)


@dataclass(frozen=True)
class ContentGroup:
    """One content rule: a source folder, its globs and its destination."""

    source_folder: str
    include_globs: tuple[str, ...] = ("**",)
    destination_folder: str | None = None
    exclude_globs: tuple[str, ...] = ()
    raw_copy: bool = False
    url_replacements: tuple[Replacement, ...] | None = None
    content_replacements: tuple[Replacement, ...] | None = None
    external_file_prefix: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContentGroup:
        src = data.get("src")
        if not isinstance(src, str):
            raise ConfigurationError(f"Content without 'src' folder: {dict(data)!r}")
        files = _strings_from(data.get("files"), "files")
        if not files:
            raise ConfigurationError(f"Content '{src}' has no 'files' patterns")
        return cls(
            source_folder=src,
            include_globs=files,
            destination_folder=data.get("dest"),
            exclude_globs=_strings_from(data.get("exclude"), "exclude"),
            raw_copy=bool(data.get("rawCopy") or False),
            url_replacements=_replacements_from(data.get("urlReplacements"), "urlReplacements"),
            content_replacements=_replacements_from(
                data.get("contentReplacements"), "contentReplacements"
            ),
            external_file_prefix=data.get("externalFilePrefix"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"src": self.source_folder}
        if self.destination_folder is not None:
            data["dest"] = self.destination_folder
        data["files"] = list(self.include_globs)
        if self.exclude_globs:
            data["exclude"] = list(self.exclude_globs)
        if self.raw_copy:
            data["rawCopy"] = True
        if self.url_replacements is not None:
            data["urlReplacements"] = [r.to_dict() for r in self.url_replacements]
        if self.content_replacements is not None:
            data["contentReplacements"] = [r.to_dict() for r in self.content_replacements]
        if self.external_file_prefix is not None:
            data["externalFilePrefix"] = self.external_file_prefix
        return data


@dataclass(frozen=True)
class AssembleConfiguration:
    """Global assembly settings plus the ordered content groups."""

    destination_folder: str = "out"
    content: tuple[ContentGroup, ...] = field(default_factory=tuple)
    url_replacements: tuple[Replacement, ...] | None = None
    content_replacements: tuple[Replacement, ...] | None = None
    external_file_prefix: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AssembleConfiguration:
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration root must be a JSON object")
        dest = data.get("dest", "")
        if not isinstance(dest, str):
            raise ConfigurationError("'dest' must be a string")
        raw_content = data.get("content") or []
        if not isinstance(raw_content, list):
            raise ConfigurationError("'content' must be a list")
        return cls(
            destination_folder=dest,
            content=tuple(ContentGroup.from_dict(item) for item in raw_content),
            url_replacements=_replacements_from(data.get("urlReplacements"), "urlReplacements"),
            content_replacements=_replacements_from(
                data.get("contentReplacements"), "contentReplacements"
            ),
            external_file_prefix=data.get("externalFilePrefix"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"dest": self.destination_folder}
        if self.external_file_prefix is not None:
            data["externalFilePrefix"] = self.external_file_prefix
        if self.url_replacements is not None:
            data["urlReplacements"] = [r.to_dict() for r in self.url_replacements]
        if self.content_replacements is not None:
            data["contentReplacements"] = [r.to_dict() for r in self.content_replacements]
        data["content"] = [group.to_dict() for group in self.content]
        return data

    def with_destination(self, destination_folder: str) -> AssembleConfiguration:
        """Return a copy with the output folder overridden."""
        return replace(self, destination_folder=destination_folder)

    def effective_url_replacements(self, group: ContentGroup) -> Sequence[Replacement]:
        if group.url_replacements is not None:
            return group.url_replacements
        return self.url_replacements or ()

    def effective_content_replacements(self, group: ContentGroup) -> Sequence[Replacement]:
        if group.content_replacements is not None:
            return group.content_replacements
        return self.content_replacements or ()

    def effective_external_prefix(self, group: ContentGroup) -> str | None:
        return group.external_file_prefix or self.external_file_prefix


def default_configuration() -> AssembleConfiguration:
    """Starter configuration written by ``docassembler init``."""
    return AssembleConfiguration(
        destination_folder="out",
        external_file_prefix="https://github.com/example/blob/main/",
        url_replacements=(Replacement(expression=r"/[Dd]ocs/", value="/"),),
        content_replacements=(
            Replacement(
                expression=r"(?<pre>[$\s])AB#(?<id>[0-9]{3,6})",
                value="${pre}[AB#${id}](https://dev.azure.com/MyCompany/MyProject/_workitems/edit/${id})",
            ),
            Replacement(expression=r"\[\[_TOC_\]\]", value=""),
        ),
        content=(
            ContentGroup(source_folder=".docfx", include_globs=("**",), raw_copy=True, url_replacements=()),
            ContentGroup(source_folder="docs", destination_folder="general", include_globs=("**",)),
            ContentGroup(
                source_folder="shared",
                destination_folder="general/shared",
                include_globs=("**/docs/**",),
            ),
            ContentGroup(
                source_folder="tools",
                destination_folder="general/tools",
                include_globs=("**/docs/**",),
            ),
            ContentGroup(
                source_folder="backend",
                destination_folder="services",
                include_globs=("**/docs/**",),
            ),
        ),
    )


__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "AssembleConfiguration",
    "ConfigurationError",
    "ContentGroup",
    "Replacement",
    "default_configuration",
]
