"""Execution-order dependencies between tests.

An ExecutionOrderDependency is the parsed form of a ``@depends`` annotation:
a reference to another test method (``Class::method``) or to a whole test
class (``Class::class``), plus the clone mode for the fixture the
dependency produces.

Identity for merging and diffing is the canonical target string returned
by ``get_target()``. Two dependencies with the same target but different
clone flags are the same dependency as far as ordering is concerned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

# Method name that marks a whole-class target.
CLASS_TARGET = "class"

TARGET_SEPARATOR = "::"

_DEEP_CLONE_OPTION = "clone"
_SHALLOW_CLONE_OPTION = "shallowClone"


@dataclass(frozen=True)
class ExecutionOrderDependency:
    """A single test dependency. The default instance is the invalid sentinel."""

    class_name: str = ""
    method_name: str = ""
    deep_clone: bool = False
    shallow_clone: bool = False

    @classmethod
    def create(
        cls,
        class_or_callable_name: str,
        method_name: str | None = None,
        deep_clone: bool = False,
        shallow_clone: bool = False,
    ) -> ExecutionOrderDependency:
        """Build a dependency from a class name or a ``Class::method`` string.

        Args:
            class_or_callable_name: Class name, or ``Class::method``. Empty
                yields the invalid sentinel.
            method_name: Method name used when the first argument is a bare
                class name. Ignored when the first argument contains ``::``.
                Empty or None targets the whole class.
            deep_clone: Fixture should be deep-copied.
            shallow_clone: Fixture should be shallow-copied.

        Returns:
            The dependency. Never raises.
        """
        if class_or_callable_name == "":
            return cls()

        if TARGET_SEPARATOR in class_or_callable_name:
            parts = class_or_callable_name.split(TARGET_SEPARATOR)
            return cls(parts[0], parts[1], deep_clone, shallow_clone)

        return cls(
            class_or_callable_name,
            method_name if method_name else CLASS_TARGET,
            deep_clone,
            shallow_clone,
        )

    @classmethod
    def from_depends_annotation(
        cls, class_name: str, annotation: str
    ) -> ExecutionOrderDependency:
        """Parse the text of a ``@depends`` annotation.

        The text is ``[cloneOption] target``. Unqualified targets are taken
        to be methods of ``class_name``, the class carrying the annotation.
        Unknown clone options are ignored.

        Args:
            class_name: Class that declares the annotation.
            annotation: Annotation text after ``@depends``.

        Returns:
            The dependency, or the invalid sentinel for empty input.
        """
        parts = annotation.strip().split(" ", 1)

        if len(parts) == 1:
            clone_option = ""
            target = parts[0]
        else:
            clone_option, target = parts

        if target != "" and TARGET_SEPARATOR not in target:
            target = class_name + TARGET_SEPARATOR + target

        return cls.create(
            target,
            None,
            clone_option == _DEEP_CLONE_OPTION,
            clone_option == _SHALLOW_CLONE_OPTION,
        )

    def __str__(self) -> str:
        return self.get_target()

    def is_valid(self) -> bool:
        # Invalid dependencies can be declared; the runner skips them
        return self.class_name != "" and self.method_name != ""

    def target_is_class(self) -> bool:
        return self.method_name == CLASS_TARGET

    def get_target(self) -> str:
        """Canonical ``Class::method`` string, or "" when invalid."""
        if not self.is_valid():
            return ""
        return self.class_name + TARGET_SEPARATOR + self.method_name

    def get_target_class_name(self) -> str:
        return self.class_name

    @staticmethod
    def filter_invalid(
        dependencies: Iterable[ExecutionOrderDependency],
    ) -> list[ExecutionOrderDependency]:
        return filter_invalid(dependencies)

    @staticmethod
    def merge_unique(
        existing: Iterable[ExecutionOrderDependency],
        additional: Iterable[ExecutionOrderDependency],
    ) -> list[ExecutionOrderDependency]:
        return merge_unique(existing, additional)

    @staticmethod
    def diff(
        left: Iterable[ExecutionOrderDependency],
        right: Iterable[ExecutionOrderDependency],
    ) -> list[ExecutionOrderDependency]:
        return diff(left, right)


def filter_invalid(
    dependencies: Iterable[ExecutionOrderDependency],
) -> list[ExecutionOrderDependency]:
    """Return the valid dependencies, in their original order."""
    return [d for d in dependencies if d.is_valid()]


def merge_unique(
    existing: Iterable[ExecutionOrderDependency],
    additional: Iterable[ExecutionOrderDependency],
) -> list[ExecutionOrderDependency]:
    """Append the dependencies of ``additional`` whose target is new.

    Every element of ``existing`` is kept, in order. An element of
    ``additional`` is appended only if its target has not been seen yet,
    either in ``existing`` or earlier in ``additional``.

    Args:
        existing: Dependencies already collected.
        additional: Candidates to append.

    Returns:
        A new list; the inputs are not modified.
    """
    merged = list(existing)
    seen = {d.get_target() for d in merged}

    for dependency in additional:
        target = dependency.get_target()
        if target in seen:
            continue
        seen.add(target)
        merged.append(dependency)

    return merged


def diff(
    left: Iterable[ExecutionOrderDependency],
    right: Iterable[ExecutionOrderDependency],
) -> list[ExecutionOrderDependency]:
    """Return the dependencies of ``left`` whose target is not in ``right``.

    Order of ``left`` is preserved.

    Args:
        left: Dependencies to filter.
        right: Dependencies to remove, matched by target.

    Returns:
        A new list; the inputs are not modified.
    """
    left = list(left)
    right_targets = {d.get_target() for d in right}

    if not right_targets:
        return left

    if not left:
        return []

    return [d for d in left if d.get_target() not in right_targets]
