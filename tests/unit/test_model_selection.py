"""
Name: Model Selection Unit Tests

Responsibilities:
  - Verify fragment type -> model role -> profile mapping
  - Verify type temperatures override profile defaults
  - Verify forced models (catalog and ad-hoc)

Collaborators:
  - fragdelegate.application.dispatcher: select_model, assign_models
  - fragdelegate.domain.model_catalog: static tables
"""

import pytest

from fragdelegate.application.dispatcher import assign_models, select_model
from fragdelegate.domain.entities import Fragment, FragmentType, ModelRole
from fragdelegate.domain.model_catalog import (
    MODEL_PROFILES,
    PROFILE_BY_ROLE,
    get_profile,
    role_for_type,
    temperature_for_type,
)


def _fragment(fragment_type: FragmentType) -> Fragment:
    return Fragment(content="x", type=fragment_type)


@pytest.mark.unit
class TestSelectModel:
    """Test suite for select_model."""

    @pytest.mark.parametrize(
        "fragment_type,model,temperature",
        [
            (FragmentType.CONTEXT, "llama3.2", 0.7),
            (FragmentType.STEP, "mistral", 0.5),
            (FragmentType.DATA, "codellama", 0.3),
            (FragmentType.TECHNICAL, "codellama", 0.3),
            (FragmentType.DESIGN, "gemma", 0.8),
            (FragmentType.GENERAL, "llama3.2", 0.6),
        ],
    )
    def test_type_table(self, fragment_type, model, temperature):
        """R: Each type maps to one model and one temperature."""
        profile = select_model(_fragment(fragment_type))

        assert profile.name == model
        assert profile.temperature == temperature

    @pytest.mark.parametrize("fragment_type", [FragmentType.CHUNK, FragmentType.FINAL])
    def test_unmapped_types_use_defaults(self, fragment_type):
        """R: Types outside the table fall back to general-purpose at 0.6."""
        profile = select_model(_fragment(fragment_type))

        assert profile.role is ModelRole.GENERAL_PURPOSE
        assert profile.temperature == 0.6

    def test_profile_limits_kept(self):
        """R: Only the temperature is overridden."""
        profile = select_model(_fragment(FragmentType.STEP))
        assert profile.max_tokens == MODEL_PROFILES["mistral"].max_tokens

    def test_catalog_is_not_mutated(self):
        """R: Overriding the temperature leaves the catalog untouched."""
        select_model(_fragment(FragmentType.DATA))
        assert MODEL_PROFILES["codellama"].temperature == 0.3
        select_model(_fragment(FragmentType.GENERAL))
        assert MODEL_PROFILES["llama3.2"].temperature == 0.7

    def test_forced_catalog_model(self):
        """R: A forced model wins over the type, temperature still from type."""
        profile = select_model(_fragment(FragmentType.DESIGN), force_model="mistral")

        assert profile.name == "mistral"
        assert profile.role is ModelRole.STRUCTURED
        assert profile.temperature == 0.8

    def test_forced_unknown_model_is_ad_hoc(self):
        """R: Unknown forced names get a profile without role."""
        profile = select_model(_fragment(FragmentType.STEP), force_model="phi3")

        assert profile.name == "phi3"
        assert profile.role is None
        assert profile.temperature == 0.5

    def test_assign_models_keeps_order(self):
        """R: One assignment per fragment, same order."""
        fragments = [
            _fragment(FragmentType.GENERAL),
            _fragment(FragmentType.DESIGN),
            _fragment(FragmentType.STEP),
        ]
        assignments = assign_models(fragments)

        assert [a.fragment for a in assignments] == fragments
        assert [a.model.name for a in assignments] == ["llama3.2", "gemma", "mistral"]
        assert assignments[1].params.temperature == 0.8


@pytest.mark.unit
class TestModelCatalog:
    """Test suite for the static catalog."""

    def test_one_profile_per_role(self):
        """R: Every role resolves to exactly one catalog profile."""
        assert set(PROFILE_BY_ROLE) == set(ModelRole)

    def test_tables_are_read_only(self):
        """R: Catalog tables cannot be modified."""
        with pytest.raises(TypeError):
            MODEL_PROFILES["other"] = get_profile("other")

    def test_lookup_helpers(self):
        assert role_for_type(FragmentType.TECHNICAL) is ModelRole.PRECISE
        assert temperature_for_type(FragmentType.CHUNK) == 0.6
        assert get_profile("gemma") is MODEL_PROFILES["gemma"]
