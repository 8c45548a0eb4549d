"""
bundleforge.engine - Selection State Transitions
================================================

Pure functions that move a :class:`FeatureSelection` from one consistent
state to the next.

Operations
----------
toggle
    Flip one feature. Stop rules may veto the whole toggle, otherwise the
    mutation rules are folded over the tentative selection in order.

retarget
    Project a selection onto another build target's catalog. No rules run:
    switching bundlers is a projection, not a user edit.

reduce
    Reducer over :class:`ConfiguratorState` for callers that dispatch
    :class:`Action` values, such as the interactive ``configure`` command.

Nothing here performs I/O or keeps state between calls. The same inputs
always produce the same output.

Example
-------
>>> from bundleforge.engine import toggle
>>> from bundleforge.models import BuildTarget, FeatureSelection
>>> toggle(FeatureSelection(), BuildTarget.WEBPACK, "React").selected_ids
['React', 'Babel']
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from functools import reduce as fold

from bundleforge.catalog import catalog_for, features_for
from bundleforge.models import (
    Action,
    ActionType,
    BuildTarget,
    ConfiguratorState,
    FeatureCatalog,
    FeatureSelection,
)
from bundleforge.rules import RuleSet, rule_set_for


logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class SelectionError(ValueError):
    """Base class for invalid requests made to the selection engine."""


class UnknownFeatureError(SelectionError):
    """A toggle named a feature the active catalog doesn't have."""

    def __init__(self, feature: str, target: BuildTarget) -> None:
        self.feature = feature
        self.target = target
        super().__init__(
            f"Unknown feature '{feature}' for {target.display_name}"
        )


class UnknownActionError(SelectionError):
    """The reducer received an action type it does not handle."""


# =============================================================================
# Transitions
# =============================================================================

def retarget(
    selection: FeatureSelection,
    from_target: BuildTarget,
    to_target: BuildTarget,
) -> FeatureSelection:
    """
    Keep the selected features that also exist for ``to_target``.

    Parameters
    ----------
    selection : FeatureSelection
        Consistent selection for ``from_target``.

    from_target, to_target : BuildTarget
        Current and requested bundler.

    Returns
    -------
    FeatureSelection
        Selection holding exactly ``selected_ids ∩ features_for(to_target)``,
        all marked selected. Unselected keys are dropped.

    Examples
    --------
    >>> s = FeatureSelection(features={"React": True, "Vue": False})
    >>> retarget(s, BuildTarget.WEBPACK, BuildTarget.PARCEL).features
    {'React': True}
    """
    available = features_for(to_target)
    surviving = [fid for fid in selection.selected_ids if fid in available]
    dropped = [fid for fid in selection.selected_ids if fid not in available]

    if dropped:
        logger.debug(
            "Switching %s -> %s drops %s",
            from_target.value,
            to_target.value,
            ", ".join(dropped),
        )

    return FeatureSelection.from_ids(surviving)


def toggle(
    selection: FeatureSelection,
    target: BuildTarget,
    feature_id: str,
    *,
    catalog: FeatureCatalog | None = None,
    rule_set: RuleSet | None = None,
) -> FeatureSelection:
    """
    Flip one feature and apply the target's rules.

    Parameters
    ----------
    selection : FeatureSelection
        Current consistent selection.

    target : BuildTarget
        Active bundler. Chooses the catalog and rule set when those
        aren't given explicitly.

    feature_id : str
        Feature to flip. Must be in the active catalog.

    catalog : FeatureCatalog | None
        Catalog to validate against. Defaults to the built-in one.

    rule_set : RuleSet | None
        Rules to apply. Defaults to the built-in ones.

    Returns
    -------
    FeatureSelection
        The new selection, or ``selection`` itself when a stop rule
        vetoed the toggle. Features the rules set that ``catalog``
        doesn't define are dropped.

    Raises
    ------
    UnknownFeatureError
        If ``feature_id`` isn't in the catalog.
    """
    catalog = catalog or catalog_for(target)
    rule_set = rule_set or rule_set_for(target)

    if feature_id not in catalog:
        raise UnknownFeatureError(feature_id, target)

    new_value = not selection.is_selected(feature_id)
    tentative = selection.with_feature(feature_id, new_value)

    for rule in rule_set.stop_rules:
        if rule.func(tentative, feature_id, new_value):
            logger.debug(
                "%s vetoed %s '%s'",
                rule.name,
                "selecting" if new_value else "deselecting",
                feature_id,
            )
            return selection

    result = fold(
        lambda current, rule: rule.func(current, feature_id, new_value),
        rule_set.mutation_rules,
        tentative,
    )

    # rules may name companions a custom catalog doesn't define
    orphans = [fid for fid in result.features if fid not in catalog]
    if orphans:
        logger.debug("Dropping features outside the catalog: %s", ", ".join(orphans))
        result = FeatureSelection(
            features={fid: value for fid, value in result.features.items() if fid in catalog}
        )

    if result != tentative:
        logger.debug(
            "Mutation rules adjusted selection after '%s': %s",
            feature_id,
            ", ".join(result.selected_ids) or "nothing selected",
        )

    return result


def is_vetoed(
    selection: FeatureSelection,
    target: BuildTarget,
    feature_id: str,
    *,
    rule_set: RuleSet | None = None,
) -> bool:
    """Whether toggling ``feature_id`` would be refused by a stop rule."""
    rule_set = rule_set or rule_set_for(target)
    new_value = not selection.is_selected(feature_id)
    tentative = selection.with_feature(feature_id, new_value)
    return any(rule.func(tentative, feature_id, new_value) for rule in rule_set.stop_rules)


def apply_toggles(
    target: BuildTarget,
    feature_ids: Iterable[str],
    selection: FeatureSelection | None = None,
    *,
    catalog: FeatureCatalog | None = None,
) -> FeatureSelection:
    """
    Replay a sequence of toggles starting from ``selection``.

    Used for ``--feature`` options and settings files, where the user's
    list is treated as a series of clicks. Vetoed toggles leave the
    selection unchanged, exactly as they would interactively.
    """
    current = selection or FeatureSelection()
    for feature_id in feature_ids:
        current = toggle(current, target, feature_id, catalog=catalog)
    return current


# =============================================================================
# Reducer
# =============================================================================

def reduce(state: ConfiguratorState, action: Action) -> ConfiguratorState:
    """
    Apply one action to the configurator state.

    Raises
    ------
    UnknownFeatureError
        If a toggle names a feature outside the active catalog.
    UnknownActionError
        If the action type isn't handled. This is a programming error and
        is never ignored.
    """
    if action.type == ActionType.SET_TARGET:
        selection = retarget(state.selection, state.target, action.target)
        return ConfiguratorState(target=action.target, selection=selection)

    if action.type == ActionType.TOGGLE_FEATURE:
        selection = toggle(state.selection, state.target, action.feature)
        return ConfiguratorState(target=state.target, selection=selection)

    raise UnknownActionError(f"Unhandled action type: {action.type!r}")
