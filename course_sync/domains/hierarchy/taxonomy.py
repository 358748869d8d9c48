# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Framework taxonomy resolution.

Maps the domain, sub-domain and subject names of a course onto the term
identifiers of the target framework.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from course_sync.domains.hierarchy.models import CourseMetadata, split_csv


@dataclass(frozen=True)
class FrameworkTerm:
    """A single framework term."""

    identifier: str
    name: str


@dataclass
class TaxonomyIds:
    """Target term identifiers resolved for one course."""

    domain_ids: list[str] = field(default_factory=list)
    sub_domain_ids: list[str] = field(default_factory=list)
    subject_ids: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether nothing was resolved."""
        return not (self.domain_ids or self.sub_domain_ids or self.subject_ids)


def _terms(items: list[Mapping[str, Any]]) -> list[FrameworkTerm]:
    return [
        FrameworkTerm(identifier=item["identifier"], name=item.get("name") or "")
        for item in items
        if item.get("identifier")
    ]


@dataclass
class FrameworkTaxonomy:
    """Domain, sub-domain and subject terms of a framework.

    Attributes:
        domains: Terms of the "domain" category.
        sub_domains: Terms of the "subDomain" category.
        subjects: Terms of the "subject" category plus subjects associated
            with domain and sub-domain terms, unique by identifier.
    """

    domains: list[FrameworkTerm] = field(default_factory=list)
    sub_domains: list[FrameworkTerm] = field(default_factory=list)
    subjects: list[FrameworkTerm] = field(default_factory=list)

    @classmethod
    def from_framework(cls, framework: Mapping[str, Any]) -> "FrameworkTaxonomy":
        """Build the taxonomy from a framework read response.

        Args:
            framework: The "framework" object of the read response.
        """
        categories = {
            category.get("code"): category.get("terms") or []
            for category in framework.get("categories") or []
        }
        domain_terms = categories.get("domain", [])
        sub_domain_terms = categories.get("subDomain", [])

        nested = [
            association
            for term in [*domain_terms, *sub_domain_terms]
            for association in term.get("associations") or []
            if association.get("category") == "subject"
        ]
        # Later entries win, as with a mapping keyed by identifier
        subjects: dict[str, FrameworkTerm] = {}
        for term in _terms([*categories.get("subject", []), *nested]):
            subjects[term.identifier] = term

        return cls(
            domains=_terms(domain_terms),
            sub_domains=_terms(sub_domain_terms),
            subjects=list(subjects.values()),
        )

    def resolve(self, metadata: CourseMetadata) -> TaxonomyIds:
        """Resolve the target identifiers for a course."""
        sub_domains = split_csv(metadata.sub_domain)
        return TaxonomyIds(
            domain_ids=[t.identifier for t in self.domains if metadata.domain and t.name == metadata.domain],
            sub_domain_ids=[t.identifier for t in self.sub_domains if t.name in sub_domains],
            subject_ids=[t.identifier for t in self.subjects if t.name in metadata.subjects],
        )
