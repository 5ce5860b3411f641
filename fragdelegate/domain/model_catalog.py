"""
Name: Model Catalog

Responsibilities:
  - Declare the static model profiles available to the dispatcher
  - Map fragment types to model roles and to sampling temperatures
  - Resolve profiles by name (catalog or ad-hoc)

Collaborators:
  - domain.entities: ModelProfile, ModelRole, FragmentType
  - application/dispatcher.py: model selection
  - application/merge.py: role preference during synthesis

Constraints:
  - Read-only: every table is an immutable mapping
  - Unknown fragment types resolve to the general-purpose defaults
"""

from types import MappingProxyType
from typing import Final, Mapping, Optional

from .entities import FragmentType, ModelProfile, ModelRole

DEFAULT_TEMPERATURE: Final[float] = 0.6
DEFAULT_ROLE: Final[ModelRole] = ModelRole.GENERAL_PURPOSE

MODEL_PROFILES: Final[Mapping[str, ModelProfile]] = MappingProxyType(
    {
        "llama3.2": ModelProfile(
            name="llama3.2",
            role=ModelRole.GENERAL_PURPOSE,
            capabilities=frozenset({"analysis", "reasoning", "french"}),
            max_tokens=4096,
            temperature=0.7,
        ),
        "mistral": ModelProfile(
            name="mistral",
            role=ModelRole.STRUCTURED,
            capabilities=frozenset({"technical", "code", "structured"}),
            max_tokens=8192,
            temperature=0.5,
        ),
        "codellama": ModelProfile(
            name="codellama",
            role=ModelRole.PRECISE,
            capabilities=frozenset({"programming", "architecture", "implementation"}),
            max_tokens=4096,
            temperature=0.3,
        ),
        "gemma": ModelProfile(
            name="gemma",
            role=ModelRole.CREATIVE,
            capabilities=frozenset({"creative", "user_experience", "design"}),
            max_tokens=2048,
            temperature=0.8,
        ),
    }
)

# R: One profile per role; the dispatcher selects by role, never by raw name
PROFILE_BY_ROLE: Final[Mapping[ModelRole, ModelProfile]] = MappingProxyType(
    {profile.role: profile for profile in MODEL_PROFILES.values()}
)

TYPE_TO_ROLE: Final[Mapping[FragmentType, ModelRole]] = MappingProxyType(
    {
        FragmentType.CONTEXT: ModelRole.GENERAL_PURPOSE,
        FragmentType.STEP: ModelRole.STRUCTURED,
        FragmentType.DATA: ModelRole.PRECISE,
        FragmentType.TECHNICAL: ModelRole.PRECISE,
        FragmentType.DESIGN: ModelRole.CREATIVE,
        FragmentType.GENERAL: ModelRole.GENERAL_PURPOSE,
    }
)

TYPE_TO_TEMPERATURE: Final[Mapping[FragmentType, float]] = MappingProxyType(
    {
        FragmentType.CONTEXT: 0.7,
        FragmentType.STEP: 0.5,
        FragmentType.DATA: 0.3,
        FragmentType.TECHNICAL: 0.3,
        FragmentType.DESIGN: 0.8,
        FragmentType.GENERAL: 0.6,
    }
)

# R: Roles whose answers are preferred as primary recommendation, per type
PREFERRED_ROLES: Final[Mapping[FragmentType, frozenset]] = MappingProxyType(
    {
        FragmentType.TECHNICAL: frozenset({ModelRole.STRUCTURED, ModelRole.PRECISE}),
        FragmentType.STEP: frozenset({ModelRole.STRUCTURED, ModelRole.PRECISE}),
        FragmentType.DESIGN: frozenset({ModelRole.CREATIVE}),
    }
)


def role_for_type(fragment_type: FragmentType) -> ModelRole:
    return TYPE_TO_ROLE.get(fragment_type, DEFAULT_ROLE)


def temperature_for_type(fragment_type: FragmentType) -> float:
    return TYPE_TO_TEMPERATURE.get(fragment_type, DEFAULT_TEMPERATURE)


def profile_for_role(role: ModelRole) -> ModelProfile:
    return PROFILE_BY_ROLE[role]


def get_profile(name: str) -> ModelProfile:
    """
    R: Resolve a profile by model name.

    Names outside the catalog get an ad-hoc profile (no role, default
    limits) so a caller can force any model the backend knows.
    """
    profile: Optional[ModelProfile] = MODEL_PROFILES.get(name)
    if profile is not None:
        return profile
    return ModelProfile(name=name)
