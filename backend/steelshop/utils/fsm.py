"""Finite state machine utility for status lifecycles with per-edge role gates.

Usage:
    from steelshop.utils.fsm import TransitionValidator
    FSM = TransitionValidator.linear(
        ('pending', 'cutting', 'completed'),
        edge_roles={('pending', 'cutting'): {'cutter'}, ('cutting', 'completed'): {'cutter'}},
    )
    FSM.check('pending', 'cutting', 'cutter')   # -> None (allowed)
    FSM.check('pending', 'completed', 'cutter') # -> 'not_successor'

`check` never raises; `assert_can_transition` raises InvalidTransition for
callers that prefer exceptions.
"""
from __future__ import annotations
from typing import Dict, Iterable, Mapping, Optional, Sequence, Set, Tuple

from steelshop.errors import InvalidTransition

UNKNOWN_STATUS = 'unknown_status'
SAME_STATE = 'same_state'
TERMINAL = 'terminal'
NOT_SUCCESSOR = 'not_successor'
ROLE_NOT_PERMITTED = InvalidTransition.ROLE_NOT_PERMITTED

Edge = Tuple[str, str]


class TransitionValidator:
    def __init__(
        self,
        graph: Mapping[str, Iterable[str]],
        edge_roles: Optional[Mapping[Edge, Iterable[str]]] = None,
        field_name: str = 'status',
    ):
        self.graph: Dict[str, Set[str]] = {k: set(v) for k, v in graph.items()}
        self.edge_roles: Optional[Dict[Edge, frozenset]] = None
        if edge_roles is not None:
            self.edge_roles = {edge: frozenset(roles) for edge, roles in edge_roles.items()}
            for src, dst in self.edge_roles:
                if dst not in self.graph.get(src, set()):
                    raise ValueError(f'Role table names undefined edge {src} -> {dst}')
        self.field_name = field_name

    @classmethod
    def linear(cls, order: Sequence[str], edge_roles=None, field_name: str = 'status'):
        """Build a strictly linear graph: each state may only advance to the next one."""
        graph = {state: set() for state in order}
        for src, dst in zip(order, order[1:]):
            graph[src].add(dst)
        return cls(graph, edge_roles=edge_roles, field_name=field_name)

    def successors(self, current: str) -> Set[str]:
        return set(self.graph.get(current, set()))

    def is_terminal(self, state: str) -> bool:
        return state in self.graph and not self.graph[state]

    def roles_for(self, current: str, target: str) -> Optional[frozenset]:
        if self.edge_roles is None:
            return None
        return self.edge_roles.get((current, target), frozenset())

    def check(self, current: str, target: str, role: Optional[str] = None) -> Optional[str]:
        """Return the rejection reason for current -> target, or None when allowed.

        Role gating only applies when the validator was built with an edge table.
        """
        if not isinstance(current, str) or not isinstance(target, str):
            return UNKNOWN_STATUS
        if current not in self.graph or target not in self.graph:
            return UNKNOWN_STATUS
        if current == target:
            return SAME_STATE
        if self.is_terminal(current):
            return TERMINAL
        if target not in self.graph[current]:
            return NOT_SUCCESSOR
        if self.edge_roles is not None and role not in self.roles_for(current, target):
            return ROLE_NOT_PERMITTED
        return None

    def can_transition(self, current: str, target: str, role: Optional[str] = None) -> bool:
        return self.check(current, target, role) is None

    def allowed_targets(self, current: str, role: Optional[str] = None) -> list:
        return sorted(t for t in self.successors(current) if self.check(current, t, role) is None)

    def assert_can_transition(self, current: str, target: str, role: Optional[str] = None):
        reason = self.check(current, target, role)
        if reason is not None:
            raise InvalidTransition(current, target, reason)
        return True


__all__ = [
    'TransitionValidator', 'UNKNOWN_STATUS', 'SAME_STATE', 'TERMINAL', 'NOT_SUCCESSOR', 'ROLE_NOT_PERMITTED',
]
