"""
Availability evaluator.

Judges a requirement tree under a Context with three-valued logic.
``And``/``Or`` ignore clauses they cannot judge, so a requirement is only
UNKNOWN when none of its parts are known.
"""

from typing import Iterable, Tuple

from rtwroster.parser import requires as r
from rtwroster.resolver.aliases import AliasTable, CyclicAliasError
from rtwroster.resolver.context import Context, Tri


def _choice(choices, key: str) -> Tri:
    if choices is None:
        return Tri.UNKNOWN
    return Tri.of(choices.get(key))


def _known(results: Iterable[Tri]):
    return [res for res in results if res is not Tri.UNKNOWN]


def _any(results: Iterable[Tri]) -> Tri:
    known = _known(results)
    if not known:
        return Tri.UNKNOWN
    return Tri.of(any(res is Tri.SATISFIED for res in known))


def _all(results: Iterable[Tri]) -> Tri:
    known = _known(results)
    if not known:
        return Tri.UNKNOWN
    return Tri.of(all(res is Tri.SATISFIED for res in known))


def try_evaluate(node, aliases: AliasTable, context: Context,
                 _chain: Tuple[str, ...] = ()) -> Tri:
    """
    Evaluate ``node`` to SATISFIED, UNSATISFIED or UNKNOWN.

    Raises:
        AliasLookupError: an Alias names nothing in ``aliases``
        CyclicAliasError: an alias expands back into itself
    """
    if isinstance(node, r.RequiresNone):
        return Tri.SATISFIED
    if isinstance(node, r.RequiresFalse):
        return Tri.UNSATISFIED
    if isinstance(node, r.IsPlayer):
        return Tri.SATISFIED
    if isinstance(node, r.Resource) and not node.factionwide:
        return _choice(context.resource, node.id)
    if isinstance(node, r.HiddenResource) and not node.factionwide:
        return _choice(context.hidden_resource, node.id)
    if isinstance(node, r.MajorEvent):
        return _choice(context.major_event, node.id)
    if isinstance(node, r.Factions):
        return _any(_choice(context.faction, fid) for fid in node.ids)
    if isinstance(node, r.Alias):
        if node.name in _chain:
            raise CyclicAliasError(_chain + (node.name,))
        return try_evaluate(aliases.lookup(node.name), aliases, context, _chain + (node.name,))
    if isinstance(node, r.Not):
        return try_evaluate(node.item, aliases, context, _chain).invert()
    if isinstance(node, r.And):
        return _all(try_evaluate(item, aliases, context, _chain) for item in node.items)
    if isinstance(node, r.Or):
        return _any(try_evaluate(item, aliases, context, _chain) for item in node.items)
    return Tri.of(context.default)


def evaluate(node, aliases: AliasTable, context: Context) -> bool:
    """Two-valued evaluation; anything unknown counts as available."""
    return try_evaluate(node, aliases, context) is not Tri.UNSATISFIED
