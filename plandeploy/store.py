"""
PlanStore - Load plan definitions from storage.

The store provides:
- Loading plans from YAML or JSON files in a plans directory
- Caching parsed definitions
- Validation of the stored name against the file name

Each load() returns a new Plan built from the cached definition, so live
plugin instances are never shared between callers.
"""

import copy
import json
from pathlib import Path
from typing import Any, Optional

import yaml

from plandeploy.errors import PlanNotFoundError, PlanValidationError
from plandeploy.plan import Plan


class PlanStore:
    """
    Store for loading plan definitions.

    Example directory structure:
        plans/
            site-sync.yaml
            marketing/
                campaign.json
    """

    def __init__(self, plans_dir: Path | str):
        """
        Initialize the store.

        Args:
            plans_dir: Path to directory containing plan definition files
        """
        self._plans_dir = Path(plans_dir)
        self._cache: dict[str, dict[str, Any]] = {}

    @property
    def plans_dir(self) -> Path:
        """Get the plans directory path."""
        return self._plans_dir

    def load(self, name: str) -> Plan:
        """
        Load a Plan by name.

        Searches for {name}.yaml, {name}.yml or {name}.json in the plans
        directory tree. YAML files are preferred over JSON when both exist.

        Args:
            name: The plan name (filename without extension)

        Returns:
            A new Plan, not yet loaded

        Raises:
            PlanNotFoundError: If the definition file doesn't exist
            PlanValidationError: If the definition is invalid
        """
        if name not in self._cache:
            self._cache[name] = self._read_definition(name)
        return Plan.from_dict(copy.deepcopy(self._cache[name]))

    def _read_definition(self, name: str) -> dict[str, Any]:
        def_path = self._find_definition(name)
        if def_path is None:
            raise PlanNotFoundError(f"Plan definition not found: {name}")

        try:
            data = self._load_file(def_path)
        except Exception as e:
            raise PlanValidationError(f"Failed to load {def_path}: {e}") from e

        if not isinstance(data, dict):
            raise PlanValidationError(f"Invalid plan in {def_path}: expected a mapping")

        data.setdefault("name", name)
        if data["name"] != name:
            raise PlanValidationError(
                f"Plan name mismatch: file is '{name}' but name is '{data['name']}'"
            )

        for key in ("aggregator_plugin", "processor_plugin"):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise PlanValidationError(f"Invalid plan in {def_path}: '{key}' must be a string")

        return data

    def _load_file(self, path: Path) -> Any:
        """
        Load a definition file (YAML or JSON).

        Raises:
            ValueError: If file format is unsupported or parsing fails
        """
        suffix = path.suffix.lower()

        with open(path) as f:
            if suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
            elif suffix == ".json":
                return json.load(f)
            else:
                raise ValueError(f"Unsupported file format: {suffix}")

    def list_plans(self) -> list[str]:
        """
        List all available plan names.

        Returns:
            Sorted list of plan names found in the plans directory
        """
        if not self._plans_dir.exists():
            return []

        names = set()
        for ext in ["*.yaml", "*.yml", "*.json"]:
            for f in self._plans_dir.glob(f"**/{ext}"):
                names.add(f.stem)

        return sorted(names)

    def _find_definition(self, name: str) -> Optional[Path]:
        """Find the definition file for a plan name, YAML first."""
        for ext in [".yaml", ".yml", ".json"]:
            filename = f"{name}{ext}"

            root_path = self._plans_dir / filename
            if root_path.exists():
                return root_path

            matches = sorted(self._plans_dir.glob(f"**/{filename}"))
            if matches:
                return matches[0]

        return None

    def clear_cache(self) -> None:
        """Clear the definition cache."""
        self._cache.clear()
