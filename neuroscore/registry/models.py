"""Pydantic models for reference metadata: scales, domains and norms."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from neuroscore.core.models import HierarchyAssignment, TestType


class ScaleReference(BaseModel):
    """Reference entry for one test scale and its taxonomy placement."""

    test: str
    test_name: str
    scale: str
    score_type: str
    domain: str
    subdomain: str
    narrow: str
    pass_: str | None = Field(default=None, alias="pass")
    verbal: str | None = None
    timed: str | None = None
    test_type: TestType = "npsych_test"
    description: str | None = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_hierarchy(self) -> HierarchyAssignment:
        """Build the HierarchyAssignment for this entry."""
        return HierarchyAssignment(
            domain=self.domain,
            subdomain=self.subdomain,
            narrow=self.narrow,
            pass_=self.pass_,
            verbal=self.verbal,
            timed=self.timed,
            test_type=self.test_type,
        )


class DomainSpec(BaseModel):
    """One row of the domain configuration table."""

    pheno: str
    number: str
    title: str
    domains: list[str]
    aliases: list[str] = Field(default_factory=list)
    scales: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def all_domains(self) -> list[str]:
        """Current domain names followed by deprecated aliases."""
        return self.domains + [a for a in self.aliases if a not in self.domains]


class NormBand(BaseModel):
    """Predicted mean and SD for one age band."""

    age_min: float
    age_max: float
    mean: float
    sd: float = Field(gt=0)

    model_config = ConfigDict(frozen=True)


class NormSpec(BaseModel):
    """Demographically adjusted norms for converting raw scores."""

    norm_id: str
    test: str
    scale: str
    name: str
    method: Literal["polynomial", "age_bands"]
    direction: Literal["higher_is_better", "lower_is_better"] = "higher_is_better"
    age_min: float
    age_max: float
    mean_coefficients: list[float] = Field(default_factory=list)
    sd_coefficients: list[float] = Field(default_factory=list)
    bands: list[NormBand] = Field(default_factory=list)
    reference: str | None = None

    model_config = ConfigDict(frozen=True)

    def covers(self, age: float) -> bool:
        """Whether the norms apply at an age.

        Age bands are whole years, so a fractional age is matched on the
        completed year.
        """
        if self.method == "age_bands":
            age = int(age)
        return self.age_min <= age <= self.age_max


class ReferenceData(BaseModel):
    """Immutable reference metadata loaded once per process."""

    version: str
    scales: tuple[ScaleReference, ...]
    domains: tuple[DomainSpec, ...]
    norms: tuple[NormSpec, ...]

    model_config = ConfigDict(frozen=True)

    def find_scale(self, scale: str, test: str | None = None) -> ScaleReference | None:
        """Find a scale entry by test and scale name.

        Matches (test, scale) exactly when a test is given. Otherwise,
        or when that fails, falls back to the scale name alone if it is
        unique across tests.
        """
        if test is not None:
            for entry in self.scales:
                if entry.test == test and entry.scale == scale:
                    return entry

        matches = [entry for entry in self.scales if entry.scale == scale]
        if len(matches) == 1:
            return matches[0]
        return None

    def get_domain_spec(self, pheno: str) -> DomainSpec | None:
        """Get a domain configuration row by pheno key."""
        for spec in self.domains:
            if spec.pheno == pheno:
                return spec
        return None

    def pheno_for_domain(self, domain: str) -> str | None:
        """Resolve a domain name (or deprecated alias) to its pheno key."""
        for spec in self.domains:
            if domain in spec.all_domains:
                return spec.pheno
        return None

    def get_norm(self, norm_id: str) -> NormSpec | None:
        """Get a norm spec by its ID."""
        for spec in self.norms:
            if spec.norm_id == norm_id:
                return spec
        return None

    def find_norms(self, test: str, scale: str) -> list[NormSpec]:
        """All norm specs for a test scale, one per age group."""
        return [spec for spec in self.norms if spec.test == test and spec.scale == scale]

    def find_norm(self, test: str, scale: str, age: float | None = None) -> NormSpec | None:
        """Find the norm spec for a test scale.

        With an age, returns the spec whose age range covers it; without
        one, the first spec listed.
        """
        for spec in self.find_norms(test, scale):
            if age is None or spec.covers(age):
                return spec
        return None
