"""
Namespace mapping table — ordered ``old-prefix → new-prefix`` module rules.

Rules are declared in path form (``javax/ejb/api``) and are available in
dotted form (``javax.ejb.api``) for exact dependency-name lookups.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath

DEFAULT_RULES: tuple[tuple[str, str], ...] = (
    ("javax/annotation/api", "jakarta/annotation/api"),
    ("javax/batch/api", "jakarta/batch/api"),
    ("javax/ejb/api", "jakarta/ejb/api"),
    ("javax/el/api", "jakarta/el/api"),
    ("javax/enterprise/concurrent/api", "jakarta/enterprise/concurrent/api"),
    ("javax/enterprise/api", "jakarta/enterprise/api"),
    ("javax/faces/api", "jakarta/faces/api"),
    ("javax/inject/api", "jakarta/inject/api"),
    ("javax/interceptor/api", "jakarta/interceptor/api"),
    ("javax/jms/api", "jakarta/jms/api"),
    ("javax/json/api", "jakarta/json/api"),
    ("javax/json/bind/api", "jakarta/json/bind/api"),
    ("javax/mail/api", "jakarta/mail/api"),
    ("javax/persistence/api", "jakarta/persistence/api"),
    ("javax/resource/api", "jakarta/resource/api"),
    ("javax/security/auth/message/api", "jakarta/security/auth/message/api"),
    ("javax/security/enterprise/api", "jakarta/security/enterprise/api"),
    ("javax/security/jacc/api", "jakarta/security/jacc/api"),
    ("javax/servlet/api", "jakarta/servlet/api"),
    ("javax/servlet/jsp/api", "jakarta/servlet/jsp/api"),
    ("javax/servlet/jstl/api", "jakarta/servlet/jstl/api"),
    ("javax/transaction/api", "jakarta/transaction/api"),
    ("javax/validation/api", "jakarta/validation/api"),
    ("javax/websocket/api", "jakarta/websocket/api"),
    ("javax/ws/rs/api", "jakarta/ws/rs/api"),
)


def _dotted(path: str) -> str:
    return path.strip("/").replace("/", ".")


@dataclass(frozen=True)
class MappingRule:
    """One path-form rename rule."""

    source: str
    target: str

    @property
    def source_parts(self) -> tuple[str, ...]:
        return PurePosixPath(self.source).parts

    @property
    def target_parts(self) -> tuple[str, ...]:
        return PurePosixPath(self.target).parts

    @property
    def source_name(self) -> str:
        return _dotted(self.source)

    @property
    def target_name(self) -> str:
        return _dotted(self.target)


@dataclass(frozen=True)
class MappingTable:
    """Static, ordered set of module rename rules.

    ``match_path`` applies the first rule whose source is a *segment*
    prefix of the path. ``rename_dependency`` is a strict exact lookup in
    dotted form.
    """

    rules: tuple[MappingRule, ...] = ()
    _names: dict[str, str] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        # Frozen dataclass: populate the cached dotted map in place
        for rule in self.rules:
            self._names.setdefault(rule.source_name, rule.target_name)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> MappingTable:
        return cls(rules=tuple(MappingRule(s.strip("/"), t.strip("/")) for s, t in pairs))

    @classmethod
    def default(cls) -> MappingTable:
        return cls.from_pairs(DEFAULT_RULES)

    def __len__(self) -> int:
        return len(self.rules)

    @property
    def name_mapping(self) -> dict[str, str]:
        """Dotted ``source → target`` map."""
        return dict(self._names)

    def match_path(self, relative: PurePosixPath | str) -> tuple[PurePosixPath, MappingRule] | None:
        """Rename a path-form identifier or module-tree relative path.

        Returns:
            ``(renamed_path, rule)`` for the first matching rule, or None.
        """
        parts = PurePosixPath(relative).parts
        for rule in self.rules:
            prefix = rule.source_parts
            if parts[: len(prefix)] == prefix:
                return PurePosixPath(*rule.target_parts, *parts[len(prefix):]), rule
        return None

    def rename_module(self, name: str) -> str | None:
        """Rename a dotted module identifier by prefix, or None if unmapped."""
        match = self.match_path(PurePosixPath(*name.split(".")))
        if match is None:
            return None
        renamed, _rule = match
        return ".".join(renamed.parts)

    def rename_dependency(self, name: str) -> str | None:
        """Exact dotted lookup for dependency references."""
        return self._names.get(name)
