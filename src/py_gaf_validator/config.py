# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, List, Literal


class WithFromRequirement(BaseModel):
    """How an evidence code constrains the With/From column."""
    requirement: Literal["required", "forbidden"]
    severity: Literal["Error", "Warning"]


class Settings(BaseSettings):
    """
    Manages the application's configuration settings.
    Utilizes Pydantic's BaseSettings to allow for environment variable overrides.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="PYGAFVALIDATOR_",
        extra="ignore"
    )

    # --- Ontology Loading ---
    ontology_load_policy: Literal["strict", "tolerant"] = Field(
        default="strict",
        description="'strict' aborts on edges or replacements that reference unknown nodes; 'tolerant' drops them with a load warning."
    )
    replacement_depth_bound: int = Field(
        default=10,
        description="Maximum number of 'term replaced by' hops followed when resolving a deprecated term."
    )

    # --- Optimization Settings ---
    max_parallel_processes: int = Field(
        default=4,
        description="Maximum number of parallel worker processes for rule evaluation. 1 disables the pool."
    )
    chunk_size: int = Field(
        default=1000,
        description="Number of annotation lines handed to a worker at a time."
    )

    # --- Report ---
    sample_cap: int = Field(
        default=50,
        description="Maximum number of example issues kept per rule in the report."
    )
    fail_on_error: bool = Field(
        default=False,
        description="Exit with a non-zero status when any Error issue was recorded."
    )

    # --- Rule Tables ---
    evidence_with_from: Dict[str, WithFromRequirement] = Field(
        default={
            "IPI": WithFromRequirement(requirement="required", severity="Warning"),
            "IGI": WithFromRequirement(requirement="required", severity="Warning"),
            "IC": WithFromRequirement(requirement="required", severity="Error"),
            "ISO": WithFromRequirement(requirement="required", severity="Error"),
            "ISA": WithFromRequirement(requirement="required", severity="Error"),
            "IBA": WithFromRequirement(requirement="required", severity="Error"),
            "ND": WithFromRequirement(requirement="forbidden", severity="Error"),
            "TAS": WithFromRequirement(requirement="forbidden", severity="Warning"),
            "NAS": WithFromRequirement(requirement="forbidden", severity="Warning"),
        },
        description="Evidence code to With/From requirement and the severity of a violation."
    )
    interacting_taxon_evidence_codes: List[str] = Field(
        default=["IPI", "IGI", "IMP", "IDA", "IEP", "EXP"],
        description="Evidence codes allowed to carry a second, interacting taxon."
    )
    negation_disallowed_evidence: List[str] = Field(
        default=["IEA", "ND"],
        description="Evidence codes that may not be combined with a NOT qualifier."
    )
    root_terms: List[str] = Field(
        default=[
            "http://purl.obolibrary.org/obo/GO_0003674",
            "http://purl.obolibrary.org/obo/GO_0005575",
            "http://purl.obolibrary.org/obo/GO_0008150",
        ],
        description="Ontology root terms; the only terms that may be annotated with ND evidence."
    )
    protein_binding_term: str = Field(
        default="http://purl.obolibrary.org/obo/GO_0005515",
        description="Term that must not be used with a NOT qualifier."
    )


# Instantiate a global settings object to be used throughout the application
settings = Settings()
