"""Reference registry for loading and caching scale, domain and norm metadata."""

import json
import logging
from functools import lru_cache
from pathlib import Path

import jsonschema

from neuroscore.registry.models import DomainSpec, NormSpec, ReferenceData, ScaleReference

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_PATH = Path(__file__).parent / "data"
DEFAULT_SCHEMA_PATH = Path(__file__).parent / "schemas"

# kind -> (data filename, schema filename)
REFERENCE_FILES: dict[str, tuple[str, str]] = {
    "scales": ("scales.json", "scale_reference.schema.json"),
    "domains": ("domains.json", "domain_config.schema.json"),
    "norms": ("norms.json", "norm_table.schema.json"),
}


class ReferenceNotFoundError(Exception):
    """Raised when a reference data file is not found."""

    pass


class ReferenceValidationError(Exception):
    """Raised when a reference data file fails validation."""

    pass


class ReferenceRegistry:
    """Registry for loading reference metadata from a directory.

    Loads three files from the registry directory:
        <registry_path>/scales.json   test scale -> hierarchy lookup
        <registry_path>/domains.json  domain configuration table
        <registry_path>/norms.json    demographic norm tables

    Each file is validated against its JSON schema before parsing.
    """

    def __init__(
        self,
        registry_path: Path | str | None = None,
        schema_path: Path | str | None = None,
    ) -> None:
        """Initialize the reference registry.

        Args:
            registry_path: Directory holding the reference files.
                Defaults to the packaged reference data.
            schema_path: Directory holding the schemas.
                Defaults to the packaged schemas.
        """
        self.registry_path = Path(registry_path) if registry_path else DEFAULT_REFERENCE_PATH
        self.schema_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH
        self._data: ReferenceData | None = None

    def _load_schema(self, filename: str) -> dict:
        """Load a JSON schema from the schema directory."""
        with open(self.schema_path / filename) as f:
            return json.load(f)

    def load_file(self, kind: str) -> dict:
        """Load and validate one reference file.

        Args:
            kind: One of 'scales', 'domains', 'norms'.

        Returns:
            The validated JSON document.

        Raises:
            ReferenceNotFoundError: If the file doesn't exist.
            ReferenceValidationError: If the file fails schema validation.
        """
        data_filename, schema_filename = REFERENCE_FILES[kind]
        path = self.registry_path / data_filename
        if not path.exists():
            raise ReferenceNotFoundError(
                f"Reference file not found: {kind} (expected at {path})"
            )

        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ReferenceValidationError(f"Invalid JSON in {path}: {e}") from e

        try:
            jsonschema.validate(data, self._load_schema(schema_filename))
        except jsonschema.ValidationError as e:
            raise ReferenceValidationError(
                f"Reference validation failed for {path}: {e.message}"
            ) from e

        return data

    def load(self) -> ReferenceData:
        """Load all reference files into an immutable ReferenceData.

        Raises:
            ReferenceNotFoundError: If a file is missing.
            ReferenceValidationError: If a file is invalid or the
                scale lookup contains duplicate (test, scale) pairs.
        """
        if self._data is not None:
            return self._data

        scales_doc = self.load_file("scales")
        domains_doc = self.load_file("domains")
        norms_doc = self.load_file("norms")

        scales = tuple(ScaleReference.model_validate(s) for s in scales_doc["scales"])
        seen: set[tuple[str, str]] = set()
        for entry in scales:
            key = (entry.test, entry.scale)
            if key in seen:
                raise ReferenceValidationError(
                    f"Duplicate scale reference: {entry.test} / {entry.scale}"
                )
            seen.add(key)

        self._data = ReferenceData(
            version=scales_doc["version"],
            scales=scales,
            domains=tuple(DomainSpec.model_validate(d) for d in domains_doc["domains"]),
            norms=tuple(NormSpec.model_validate(n) for n in norms_doc["norms"]),
        )
        logger.debug(
            "Loaded reference %s from %s: %d scales, %d domains, %d norms",
            self._data.version,
            self.registry_path,
            len(self._data.scales),
            len(self._data.domains),
            len(self._data.norms),
        )
        return self._data


@lru_cache(maxsize=None)
def _load_cached(registry_path: Path) -> ReferenceData:
    return ReferenceRegistry(registry_path).load()


def load_reference(registry_path: Path | str | None = None) -> ReferenceData:
    """Load reference data once per process and registry directory.

    Args:
        registry_path: Reference directory, or None for the packaged data.

    Returns:
        The shared, read-only ReferenceData.
    """
    path = Path(registry_path) if registry_path else DEFAULT_REFERENCE_PATH
    return _load_cached(path.resolve())
