"""
bundleforge.rules - Stop and Mutation Rules per Build Target
============================================================

Rules keep a feature selection consistent while the user toggles features.
There are two kinds:

Stop rules
    ``(tentative, changed_feature, new_value) -> bool``. Returning True
    vetoes the user's toggle outright. Stop rules see the *tentative*
    selection, i.e. the full selection with the toggle already applied.

Mutation rules
    ``(selection, changed_feature, new_value) -> FeatureSelection``.
    Applied left to right after all stop rules passed, each one receiving
    the previous rule's output. They set or clear companion features and
    never consult stop rules.

Every rule is a pure function. Rule order is part of the configuration:
``bundleforge rules --target webpack`` prints it.

Example
-------
>>> from bundleforge.rules import rule_set_for
>>> from bundleforge.models import BuildTarget
>>> [rule.name for rule in rule_set_for(BuildTarget.PARCEL).mutation_rules]
['enforce_either_react_or_vue', 'add_babel_if_react']
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from bundleforge.catalog import BABEL, REACT, REACT_HOT_LOADER, TYPESCRIPT, VUE
from bundleforge.models import BuildTarget, FeatureSelection


StopFunction = Callable[[FeatureSelection, str, bool], bool]
MutationFunction = Callable[[FeatureSelection, str, bool], FeatureSelection]


class RuleKind(str, Enum):
    """Whether a rule can veto a toggle or adjusts its consequences."""

    STOP = "stop"
    MUTATION = "mutation"


@dataclass(frozen=True)
class Rule:
    """
    One entry of a rule set.

    Attributes
    ----------
    name : str
        Identifier shown by ``bundleforge rules``.

    kind : RuleKind
        Stop or mutation.

    func : StopFunction | MutationFunction
        The rule itself.

    description : str
        One-line explanation for listings.
    """

    name: str
    kind: RuleKind
    func: StopFunction | MutationFunction
    description: str = ""


@dataclass(frozen=True)
class RuleSet:
    """Ordered rules of one build target."""

    target: BuildTarget
    rules: tuple[Rule, ...]

    @property
    def stop_rules(self) -> list[Rule]:
        return [rule for rule in self.rules if rule.kind == RuleKind.STOP]

    @property
    def mutation_rules(self) -> list[Rule]:
        return [rule for rule in self.rules if rule.kind == RuleKind.MUTATION]


# =============================================================================
# Stop Rules
# =============================================================================

def stop_if_not_babel_or_typescript_for_react(
    tentative: FeatureSelection,
    feature: str,
    selected: bool,
) -> bool:
    """
    Veto deselecting the last transpiler React depends on.

    React source needs either Babel or Typescript to compile. Turning one
    of them off is refused when React would be left with neither.
    """
    if selected or feature not in {BABEL, TYPESCRIPT}:
        return False
    return (
        tentative.is_selected(REACT)
        and not tentative.is_selected(BABEL)
        and not tentative.is_selected(TYPESCRIPT)
    )


# =============================================================================
# Mutation Rules
# =============================================================================

def enforce_either_react_or_vue(
    selection: FeatureSelection,
    feature: str,
    selected: bool,
) -> FeatureSelection:
    """Selecting React clears Vue and selecting Vue clears React."""
    if not selected:
        return selection
    if feature == REACT and selection.is_selected(VUE):
        return selection.with_feature(VUE, False)
    if feature == VUE and selection.is_selected(REACT):
        return selection.with_feature(REACT, False)
    return selection


def add_babel_if_react(
    selection: FeatureSelection,
    feature: str,
    selected: bool,
) -> FeatureSelection:
    """Selecting React without Typescript brings in Babel to compile JSX."""
    if feature == REACT and selected and not selection.is_selected(TYPESCRIPT):
        return selection.with_feature(BABEL, True)
    return selection


def add_or_remove_react_hot_loader(
    selection: FeatureSelection,
    feature: str,
    selected: bool,
) -> FeatureSelection:
    """
    Clear the hot loader whenever it would be hidden.

    The hot loader is only offered with React and without Typescript. Any
    toggle that leaves React off or Typescript on also deselects it, so a
    hidden feature can never keep contributing packages.
    """
    if not selection.is_selected(REACT_HOT_LOADER):
        return selection
    if not selection.is_selected(REACT) or selection.is_selected(TYPESCRIPT):
        return selection.with_feature(REACT_HOT_LOADER, False)
    return selection


# =============================================================================
# Rule Sets
# =============================================================================

STOP_IF_NOT_BABEL_OR_TYPESCRIPT_FOR_REACT = Rule(
    name="stop_if_not_babel_or_typescript_for_react",
    kind=RuleKind.STOP,
    func=stop_if_not_babel_or_typescript_for_react,
    description="React keeps at least one of Babel or Typescript",
)
ENFORCE_EITHER_REACT_OR_VUE = Rule(
    name="enforce_either_react_or_vue",
    kind=RuleKind.MUTATION,
    func=enforce_either_react_or_vue,
    description="React and Vue are mutually exclusive",
)
ADD_BABEL_IF_REACT = Rule(
    name="add_babel_if_react",
    kind=RuleKind.MUTATION,
    func=add_babel_if_react,
    description="Selecting React without Typescript selects Babel",
)
ADD_OR_REMOVE_REACT_HOT_LOADER = Rule(
    name="add_or_remove_react_hot_loader",
    kind=RuleKind.MUTATION,
    func=add_or_remove_react_hot_loader,
    description="Hot loader is cleared without React or with Typescript",
)

RULE_SETS: dict[BuildTarget, RuleSet] = {
    BuildTarget.WEBPACK: RuleSet(
        target=BuildTarget.WEBPACK,
        rules=(
            STOP_IF_NOT_BABEL_OR_TYPESCRIPT_FOR_REACT,
            ENFORCE_EITHER_REACT_OR_VUE,
            ADD_BABEL_IF_REACT,
            ADD_OR_REMOVE_REACT_HOT_LOADER,
        ),
    ),
    BuildTarget.PARCEL: RuleSet(
        target=BuildTarget.PARCEL,
        rules=(
            STOP_IF_NOT_BABEL_OR_TYPESCRIPT_FOR_REACT,
            ENFORCE_EITHER_REACT_OR_VUE,
            ADD_BABEL_IF_REACT,
        ),
    ),
}


def rule_set_for(target: BuildTarget) -> RuleSet:
    """The built-in rule set for ``target``."""
    return RULE_SETS[target]
