"""Declared test dependencies loaded from a manifest file.

The manifest maps test identifiers to the ``@depends`` annotation strings
declared on them::

    depends:
      CartTest:
        - UserTest::class
      CartTest::testAddItem:
        - testCreateCart
        - clone InventoryTest::testStock

A key is either a class (class-level declarations) or ``Class::method``
(method-level declarations). Unqualified targets resolve against the
class part of the key.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from execution_order.dependency import (
    TARGET_SEPARATOR,
    ExecutionOrderDependency,
    diff,
    filter_invalid,
    merge_unique,
)


def _declaring_class(key: str) -> str:
    return key.split(TARGET_SEPARATOR, 1)[0]


def _annotation_list(key: str, value: Any) -> list[str]:
    """Normalize a manifest value to a list of annotation strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(
        f"Dependencies of '{key}' must be a string or a list of strings, "
        f"got {type(value).__name__}"
    )


@dataclass
class DependencyManifest:
    """Resolved dependency declarations, keyed by class or ``Class::method``."""

    declarations: dict[str, list[ExecutionOrderDependency]] = field(
        default_factory=dict
    )
    # Annotation strings that did not resolve to a valid dependency
    invalid: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DependencyManifest:
        """Construct a manifest from parsed YAML or JSON.

        Args:
            data: Dict with an optional 'depends' mapping.

        Returns:
            A fully resolved DependencyManifest.

        Raises:
            ValueError: If the manifest structure is malformed.
        """
        manifest = cls()
        if not data:
            return manifest
        if not isinstance(data, dict):
            raise ValueError("Manifest must be a mapping")

        depends = data.get("depends") or {}
        if not isinstance(depends, dict):
            raise ValueError("'depends' must be a mapping of test ids to annotations")

        for key, value in depends.items():
            if not isinstance(key, str) or not key.strip():
                raise ValueError(f"Invalid test id in manifest: {key!r}")

            annotations = _annotation_list(key, value)
            class_name = _declaring_class(key)
            parsed = [
                ExecutionOrderDependency.from_depends_annotation(class_name, a)
                for a in annotations
            ]

            rejected = [a for a, d in zip(annotations, parsed) if not d.is_valid()]
            if rejected:
                manifest.invalid[key] = rejected
                for annotation in rejected:
                    print(
                        f"depends manifest: skipping invalid dependency "
                        f"{annotation!r} on {key}",
                        file=sys.stderr,
                    )

            manifest.declarations[key] = merge_unique(
                [], filter_invalid(parsed)
            )

        return manifest

    @classmethod
    def load(cls, path: Path) -> DependencyManifest:
        """Read and resolve a manifest file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not valid YAML or is malformed.
        """
        text = path.read_text()
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid manifest {path}: {e}") from e
        return cls.from_dict(data)

    def declared(self, key: str) -> list[ExecutionOrderDependency]:
        """Get the dependencies declared on exactly this key."""
        return list(self.declarations.get(key, []))

    def dependencies_for(self, test_id: str) -> list[ExecutionOrderDependency]:
        """Get the effective dependencies of a test.

        Method-level declarations come first, followed by any class-level
        declarations of the declaring class that are not already present.

        Args:
            test_id: ``Class::method`` or a class name.

        Returns:
            List of dependencies, without duplicate targets.
        """
        class_name = _declaring_class(test_id)
        own = self.declared(test_id)
        if class_name == test_id:
            return own
        return merge_unique(own, self.declared(class_name))

    def unsatisfied(
        self, test_id: str, completed: list[ExecutionOrderDependency]
    ) -> list[ExecutionOrderDependency]:
        """Get the dependencies of a test whose targets are not in ``completed``."""
        return diff(self.dependencies_for(test_id), completed)

    def to_dict(self) -> dict[str, Any]:
        """Resolved form: canonical targets with their clone flags."""
        return {
            "depends": {
                key: [
                    {
                        "target": d.get_target(),
                        "deep_clone": d.deep_clone,
                        "shallow_clone": d.shallow_clone,
                    }
                    for d in deps
                ]
                for key, deps in self.declarations.items()
            }
        }

    def write_yaml(self, path: Path) -> None:
        """Write the resolved manifest as a YAML file.

        Args:
            path: File path to write to.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(
                self.to_dict(),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
