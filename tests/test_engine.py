"""
Tests for bundleforge.engine
============================

This module contains tests for the selection state transitions.

Test Organization
-----------------
- TestToggle: Tests for single toggles through the rules
- TestVeto: Tests for stop rule vetoes
- TestRetarget: Tests for switching bundlers
- TestApplyToggles: Tests for replaying click sequences
- TestReduce: Tests for the reducer
- TestSelectionProperties: Exhaustive checks over toggle sequences
"""

import itertools
import logging

import pytest
from pathlib import Path

from bundleforge.catalog import catalog_for
from bundleforge.engine import (
    SelectionError,
    UnknownActionError,
    UnknownFeatureError,
    apply_toggles,
    is_vetoed,
    reduce,
    retarget,
    toggle,
)
from bundleforge.models import (
    Action,
    ActionType,
    BuildTarget,
    ConfiguratorState,
    FeatureCatalog,
    FeatureSelection,
)
from bundleforge.synthesizer import synthesize, visible_features


WEBPACK = BuildTarget.WEBPACK
PARCEL = BuildTarget.PARCEL


# =============================================================================
# Toggle Tests
# =============================================================================

class TestToggle:
    """Tests for toggle."""

    def test_select_plain_feature(self) -> None:
        """Test selecting a feature no rule cares about."""
        result = toggle(FeatureSelection(), WEBPACK, "Sass")

        assert result.features == {"Sass": True}

    def test_deselect_plain_feature(self) -> None:
        """Test toggling twice turns a feature off again."""
        selected = toggle(FeatureSelection(), WEBPACK, "Sass")

        result = toggle(selected, WEBPACK, "Sass")

        assert not result.is_selected("Sass")

    def test_react_brings_babel(self) -> None:
        """Test selecting React on an empty selection."""
        result = toggle(FeatureSelection(), WEBPACK, "React")

        assert result.selected_ids == ["React", "Babel"]

    def test_react_makes_hot_loader_visible_only(self) -> None:
        """Test that the hot loader is offered but not selected."""
        catalog = catalog_for(WEBPACK)
        before = visible_features(catalog, FeatureSelection())

        result = toggle(FeatureSelection(), WEBPACK, "React")

        assert "React hot loader" not in before
        assert "React hot loader" in visible_features(catalog, result)
        assert not result.is_selected("React hot loader")

    def test_react_replaces_vue(self) -> None:
        """Test selecting React deselects Vue."""
        vue = toggle(FeatureSelection(), WEBPACK, "Vue")

        result = toggle(vue, WEBPACK, "React")

        assert result.is_selected("React")
        assert not result.is_selected("Vue")

    def test_vue_replaces_react(self) -> None:
        """Test selecting Vue deselects React but keeps Babel."""
        react = toggle(FeatureSelection(), WEBPACK, "React")

        result = toggle(react, WEBPACK, "Vue")

        assert result.selected_ids == ["Babel", "Vue"]

    def test_typescript_hides_and_clears_hot_loader(self) -> None:
        """Test React, hot loader, then Typescript."""
        selection = apply_toggles(WEBPACK, ["React", "React hot loader"])
        assert selection.is_selected("React hot loader")

        result = toggle(selection, WEBPACK, "Typescript")

        assert not result.is_selected("React hot loader")
        assert "React hot loader" not in visible_features(catalog_for(WEBPACK), result)

    def test_deselecting_react_clears_hot_loader(self) -> None:
        """Test the hot loader goes with React."""
        selection = apply_toggles(WEBPACK, ["React", "React hot loader"])

        result = toggle(selection, WEBPACK, "React")

        assert result.selected_ids == ["Babel"]

    def test_react_with_typescript_skips_babel(self) -> None:
        """Test Typescript first, then React."""
        result = apply_toggles(WEBPACK, ["Typescript", "React"])

        assert result.selected_ids == ["Typescript", "React"]

    def test_input_not_modified(self) -> None:
        """Test that toggle never mutates its argument."""
        selection = FeatureSelection.from_ids(["Sass"])

        toggle(selection, WEBPACK, "React")

        assert selection.features == {"Sass": True}

    def test_unknown_feature(self) -> None:
        """Test toggling a feature outside the active catalog."""
        with pytest.raises(UnknownFeatureError, match="Unknown feature 'Vue' for Parcel"):
            toggle(FeatureSelection(), PARCEL, "Vue")

    def test_unknown_feature_is_value_error(self) -> None:
        """Test the error hierarchy callers can catch."""
        with pytest.raises(SelectionError):
            toggle(FeatureSelection(), WEBPACK, "Angular")
        assert issubclass(SelectionError, ValueError)

    def test_deterministic(self) -> None:
        """Test that identical inputs give identical outputs."""
        selection = FeatureSelection.from_ids(["Vue", "CSS"])

        assert toggle(selection, WEBPACK, "React") == toggle(selection, WEBPACK, "React")

    def test_logs_adjustments(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test debug logging of mutation rule changes."""
        with caplog.at_level(logging.DEBUG, logger="bundleforge.engine"):
            toggle(FeatureSelection(), WEBPACK, "React")

        assert "Mutation rules adjusted" in caplog.text

    def test_companions_outside_custom_catalog_dropped(self, tmp_path: Path) -> None:
        """Test rules can't select features a custom catalog lacks."""
        path = tmp_path / "catalog.toml"
        path.write_text(
            'target = "webpack"\n\n[[features]]\nid = "React"\ndependencies = ["react"]\n'
        )
        catalog = FeatureCatalog.from_toml(path)

        result = toggle(FeatureSelection(), WEBPACK, "React", catalog=catalog)

        assert result.features == {"React": True}
        assert all(fid in catalog for fid in result.selected_ids)

        plan = synthesize(WEBPACK, result, catalog=catalog)
        assert plan.project_name == "empty-project-react"
        assert "Babel" not in plan.selected_features

    def test_apply_toggles_with_custom_catalog(self, tmp_path: Path) -> None:
        """Test replayed clicks stay inside a custom catalog."""
        path = tmp_path / "catalog.toml"
        path.write_text(
            'target = "webpack"\n\n[[features]]\nid = "React"\n\n[[features]]\nid = "Vue"\n'
        )
        catalog = FeatureCatalog.from_toml(path)

        result = apply_toggles(WEBPACK, ["Vue", "React"], catalog=catalog)

        assert result.selected_ids == ["React"]
        assert set(result.features) <= set(catalog.feature_ids)


# =============================================================================
# Veto Tests
# =============================================================================

class TestVeto:
    """Tests for stop rule vetoes."""

    def test_cannot_remove_babel_from_react(self) -> None:
        """Test that Babel can't be deselected while React needs it."""
        selection = toggle(FeatureSelection(), WEBPACK, "React")

        result = toggle(selection, WEBPACK, "Babel")

        assert result is selection

    def test_veto_is_atomic(self) -> None:
        """Test that a vetoed toggle returns the exact input object."""
        selection = apply_toggles(PARCEL, ["Typescript", "React"])

        assert toggle(selection, PARCEL, "Typescript") is selection

    def test_babel_removable_with_typescript(self) -> None:
        """Test that Babel can go once Typescript covers React."""
        selection = apply_toggles(WEBPACK, ["React", "Typescript"])

        result = toggle(selection, WEBPACK, "Babel")

        assert result.selected_ids == ["React", "Typescript"]

    def test_is_vetoed(self) -> None:
        """Test the veto preview."""
        selection = toggle(FeatureSelection(), WEBPACK, "React")

        assert is_vetoed(selection, WEBPACK, "Babel")
        assert not is_vetoed(selection, WEBPACK, "Typescript")
        assert not is_vetoed(selection, WEBPACK, "React")

    def test_veto_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that vetoes are logged at debug level."""
        selection = toggle(FeatureSelection(), WEBPACK, "React")

        with caplog.at_level(logging.DEBUG, logger="bundleforge.engine"):
            toggle(selection, WEBPACK, "Babel")

        assert "vetoed deselecting 'Babel'" in caplog.text


# =============================================================================
# Retarget Tests
# =============================================================================

class TestRetarget:
    """Tests for retarget."""

    def test_keeps_shared_features(self) -> None:
        """Test switching webpack to parcel with React and a false Vue."""
        selection = FeatureSelection(features={"React": True, "Vue": False})

        result = retarget(selection, WEBPACK, PARCEL)

        assert result.features == {"React": True}

    def test_drops_unsupported_features(self) -> None:
        """Test that webpack-only features are dropped."""
        selection = apply_toggles(WEBPACK, ["React", "React hot loader", "SVG", "Sass"])

        result = retarget(selection, WEBPACK, PARCEL)

        assert result.selected_ids == ["React", "Babel", "Sass"]

    def test_no_rules_run(self) -> None:
        """Test that retargeting is a projection, not a toggle."""
        selection = FeatureSelection.from_ids(["React"])

        result = retarget(selection, WEBPACK, PARCEL)

        assert not result.is_selected("Babel")

    def test_round_trip_loses_dropped_features(self) -> None:
        """Test that dropped features don't come back."""
        selection = FeatureSelection.from_ids(["Vue", "CSS"])

        back = retarget(retarget(selection, WEBPACK, PARCEL), PARCEL, WEBPACK)

        assert back.selected_ids == ["CSS"]

    def test_logs_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test debug logging of dropped features."""
        with caplog.at_level(logging.DEBUG, logger="bundleforge.engine"):
            retarget(FeatureSelection.from_ids(["Vue"]), WEBPACK, PARCEL)

        assert "drops Vue" in caplog.text


# =============================================================================
# apply_toggles Tests
# =============================================================================

class TestApplyToggles:
    """Tests for apply_toggles."""

    def test_empty_sequence(self) -> None:
        """Test that no clicks give an empty selection."""
        assert apply_toggles(WEBPACK, []) == FeatureSelection()

    def test_starts_from_given_selection(self) -> None:
        """Test continuing from an existing selection."""
        start = FeatureSelection.from_ids(["CSS"])

        result = apply_toggles(WEBPACK, ["Sass"], start)

        assert result.selected_ids == ["CSS", "Sass"]

    def test_vetoed_clicks_are_skipped(self) -> None:
        """Test that a vetoed click leaves the selection as it was."""
        result = apply_toggles(WEBPACK, ["React", "Babel", "Sass"])

        assert result.selected_ids == ["React", "Babel", "Sass"]


# =============================================================================
# Reducer Tests
# =============================================================================

class TestReduce:
    """Tests for reduce."""

    def test_toggle_action(self) -> None:
        """Test dispatching a toggle."""
        state = reduce(
            ConfiguratorState(),
            Action(type=ActionType.TOGGLE_FEATURE, feature="React"),
        )

        assert state.target == WEBPACK
        assert state.selection.selected_ids == ["React", "Babel"]

    def test_set_target_action(self) -> None:
        """Test dispatching a target switch."""
        state = ConfiguratorState(
            selection=FeatureSelection(features={"React": True, "Vue": False}),
        )

        result = reduce(state, Action(type=ActionType.SET_TARGET, target=PARCEL))

        assert result.target == PARCEL
        assert result.selection.features == {"React": True}

    def test_state_not_modified(self) -> None:
        """Test that reduce returns a new state."""
        state = ConfiguratorState()

        reduce(state, Action(type=ActionType.TOGGLE_FEATURE, feature="CSS"))

        assert state.selection.selected_ids == []

    def test_toggle_unknown_feature(self) -> None:
        """Test that unknown features propagate from the reducer."""
        state = ConfiguratorState(target=PARCEL)

        with pytest.raises(UnknownFeatureError):
            reduce(state, Action(type=ActionType.TOGGLE_FEATURE, feature="Vue"))

    def test_unhandled_action_type(self) -> None:
        """Test that unhandled actions raise instead of being ignored."""
        action = Action.model_construct(type="reset", target=None, feature=None)

        with pytest.raises(UnknownActionError, match="Unhandled action type"):
            reduce(ConfiguratorState(), action)


# =============================================================================
# Property Tests
# =============================================================================

def _sequences(target: BuildTarget, length: int):
    ids = catalog_for(target).feature_ids[:6]
    return itertools.product(ids, repeat=length)


@pytest.mark.slow
class TestSelectionProperties:
    """Exhaustive checks over short toggle sequences."""

    @pytest.mark.parametrize("target", list(BuildTarget))
    def test_invariants_hold_after_any_sequence(self, target: BuildTarget) -> None:
        """Test mutual exclusion, transpiler and visibility invariants."""
        catalog = catalog_for(target)

        for sequence in _sequences(target, 4):
            selection = apply_toggles(target, sequence)

            assert not (selection.is_selected("React") and selection.is_selected("Vue"))
            if selection.is_selected("React"):
                assert selection.is_selected("Babel") or selection.is_selected("Typescript")

            shown = visible_features(catalog, selection)
            hidden_selected = [
                fid for fid in selection.selected_ids if fid not in shown
            ]
            assert hidden_selected == [], sequence

    def test_only_catalog_features_selected(self) -> None:
        """Test that toggles never select a feature outside the catalog."""
        catalog = catalog_for(WEBPACK)

        for sequence in _sequences(WEBPACK, 3):
            selection = apply_toggles(WEBPACK, sequence)
            assert all(fid in catalog for fid in selection.features)
