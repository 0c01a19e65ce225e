"""Role and ownership rules for every resource, and the resolver over them.

Each ``(resource type, action)`` pair has exactly one ``Rule``. A rule names
the roles allowed to attempt the action and the ownership relation the caller
must hold towards the target instance. ``evaluate`` is pure: ownership facts
are looked up beforehand (see ``club_manager.ownership``) and handed in.

Collection reads carry no instance, so instead of an ownership check they get
a ``RowFilter`` describing which rows the caller may see.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Mapping, Optional

from club_manager.errors import NotOwner, RoleNotPermitted

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = 'admin'
    COACH = 'coach'
    PLAYER = 'player'


class AccountStatus(str, Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    SUSPENDED = 'suspended'


class Action(str, Enum):
    CREATE = 'create'
    READ = 'read'
    UPDATE = 'update'
    DELETE = 'delete'


class ResourceType(str, Enum):
    USER = 'user'
    PLAYER = 'player'
    COACH = 'coach'
    GAME = 'game'
    BATCH = 'batch'
    SESSION = 'session'
    ATTENDANCE = 'attendance'
    PAYMENT = 'payment'
    PERFORMANCE_NOTE = 'performance_note'
    PLAYER_STATS = 'player_stats'
    ROSTER = 'roster'
    DATABASE = 'database'


class Ownership(str, Enum):
    NONE = 'none'
    SELF = 'self'
    ASSIGNED_COACH = 'assigned_coach'
    RELATED_PLAYER = 'related_player'
    # assigned coach, or a player enrolled through their games or attendance
    ENROLLED = 'enrolled'


class Scope(str, Enum):
    """Which rows of a collection a role may list."""
    ALL = 'all'
    OWN_ACCOUNT = 'own_account'
    OWN_PLAYER = 'own_player'
    COACHED = 'coached'


@dataclass(frozen=True)
class Principal:
    id: int
    role: Role
    status: AccountStatus = AccountStatus.ACTIVE

    @property
    def is_admin(self):
        return self.role is Role.ADMIN


@dataclass(frozen=True)
class OwnerFacts:
    """Relationships of one resource instance, resolved by following foreign keys.

    ``user_id`` is the account the instance is bound to (a user row, or the
    account behind a player/coach profile). ``coach_user_ids`` is a set since
    a player can be related to more than one coach. ``member_user_ids`` holds
    the accounts of players enrolled in a batch or session.
    """
    user_id: Optional[int] = None
    player_user_id: Optional[int] = None
    coach_user_ids: FrozenSet[int] = frozenset()
    member_user_ids: FrozenSet[int] = frozenset()


@dataclass(frozen=True)
class Rule:
    resource_type: ResourceType
    action: Action
    allowed_roles: FrozenSet[Role]
    ownership: Ownership = Ownership.NONE
    # related_player rules only: whether a related coach also qualifies
    coach_access: bool = False
    list_scopes: Mapping[Role, Scope] = field(default_factory=dict)


@dataclass(frozen=True)
class RowFilter:
    scope: Scope
    principal: Principal

    @property
    def unrestricted(self):
        return self.scope is Scope.ALL


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str
    row_filter: Optional[RowFilter] = None
    denial: Optional[type] = None

    @classmethod
    def allow(cls, reason='allowed', row_filter=None):
        return cls(True, reason, row_filter)

    @classmethod
    def deny(cls, reason, denial=RoleNotPermitted):
        return cls(False, reason, denial=denial)

    def raise_for_denial(self):
        if not self.allowed:
            raise self.denial()
        return self


A = Role.ADMIN
C = Role.COACH
P = Role.PLAYER

ALL_ROLES = frozenset({A, C, P})
STAFF = frozenset({A, C})
ADMIN_ONLY = frozenset({A})
ADMIN_AND_PLAYER = frozenset({A, P})


def _rules(resource_type, create, read, update, delete):
    built = {}
    for action, entry in ((Action.CREATE, create), (Action.READ, read),
                          (Action.UPDATE, update), (Action.DELETE, delete)):
        roles, options = entry[0], entry[1] if len(entry) > 1 else {}
        built[(resource_type, action)] = Rule(resource_type, action, roles, **options)
    return built


def _build_rules():
    rules = {}
    rules.update(_rules(
        ResourceType.USER,
        create=(ADMIN_ONLY,),
        read=(ALL_ROLES, {'ownership': Ownership.SELF,
                          'list_scopes': {C: Scope.OWN_ACCOUNT, P: Scope.OWN_ACCOUNT}}),
        update=(ALL_ROLES, {'ownership': Ownership.SELF}),
        delete=(ADMIN_ONLY,),
    ))
    rules.update(_rules(
        ResourceType.PLAYER,
        create=(ADMIN_ONLY,),
        read=(ALL_ROLES, {'ownership': Ownership.RELATED_PLAYER, 'coach_access': True,
                          'list_scopes': {C: Scope.COACHED, P: Scope.OWN_PLAYER}}),
        update=(ADMIN_AND_PLAYER, {'ownership': Ownership.SELF}),
        delete=(ADMIN_ONLY,),
    ))
    rules.update(_rules(
        ResourceType.COACH,
        create=(ADMIN_ONLY,),
        read=(ALL_ROLES,),
        update=(STAFF, {'ownership': Ownership.SELF}),
        delete=(ADMIN_ONLY,),
    ))
    rules.update(_rules(
        ResourceType.GAME,
        create=(ADMIN_ONLY,),
        read=(ALL_ROLES,),
        update=(ADMIN_ONLY,),
        delete=(ADMIN_ONLY,),
    ))
    rules.update(_rules(
        ResourceType.BATCH,
        create=(ADMIN_ONLY,),
        read=(ALL_ROLES, {'ownership': Ownership.ENROLLED,
                          'list_scopes': {C: Scope.COACHED, P: Scope.OWN_PLAYER}}),
        update=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
        delete=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
    ))
    rules.update(_rules(
        ResourceType.SESSION,
        create=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
        read=(ALL_ROLES, {'ownership': Ownership.ENROLLED,
                          'list_scopes': {C: Scope.COACHED, P: Scope.OWN_PLAYER}}),
        update=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
        delete=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
    ))
    rules.update(_rules(
        ResourceType.ATTENDANCE,
        create=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
        read=(ALL_ROLES, {'ownership': Ownership.RELATED_PLAYER, 'coach_access': True,
                          'list_scopes': {C: Scope.COACHED, P: Scope.OWN_PLAYER}}),
        update=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
        delete=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
    ))
    rules.update(_rules(
        ResourceType.PAYMENT,
        create=(ADMIN_ONLY,),
        read=(ADMIN_AND_PLAYER, {'ownership': Ownership.RELATED_PLAYER,
                                 'list_scopes': {P: Scope.OWN_PLAYER}}),
        update=(ADMIN_ONLY,),
        delete=(ADMIN_ONLY,),
    ))
    rules.update(_rules(
        ResourceType.PERFORMANCE_NOTE,
        create=(STAFF,),
        read=(ALL_ROLES, {'ownership': Ownership.RELATED_PLAYER, 'coach_access': True,
                          'list_scopes': {C: Scope.COACHED, P: Scope.OWN_PLAYER}}),
        update=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
        delete=(STAFF, {'ownership': Ownership.ASSIGNED_COACH}),
    ))
    rules.update(_rules(
        ResourceType.PLAYER_STATS,
        create=(STAFF, {'ownership': Ownership.RELATED_PLAYER, 'coach_access': True}),
        read=(ALL_ROLES, {'ownership': Ownership.RELATED_PLAYER, 'coach_access': True,
                          'list_scopes': {C: Scope.COACHED, P: Scope.OWN_PLAYER}}),
        update=(STAFF, {'ownership': Ownership.RELATED_PLAYER, 'coach_access': True}),
        delete=(ADMIN_ONLY,),
    ))
    rules.update(_rules(
        ResourceType.ROSTER,
        create=(ADMIN_ONLY,),
        read=(STAFF, {'ownership': Ownership.SELF}),
        update=(ADMIN_ONLY,),
        delete=(ADMIN_ONLY,),
    ))
    rules.update(_rules(
        ResourceType.DATABASE,
        create=(ADMIN_ONLY,),
        read=(ADMIN_ONLY,),
        update=(ADMIN_ONLY,),
        delete=(ADMIN_ONLY,),
    ))

    for rule in rules.values():
        if A not in rule.allowed_roles:
            raise ValueError(f"Rule {rule.resource_type.value}:{rule.action.value} must allow admin")
    return rules


RULES = _build_rules()


def get_rule(resource_type, action):
    try:
        key = (ResourceType(resource_type), Action(action))
    except ValueError:
        return None
    return RULES.get(key)


def _collection_decision(principal, rule):
    if principal.is_admin:
        return Decision.allow('admin', RowFilter(Scope.ALL, principal))
    scope = rule.list_scopes.get(principal.role, Scope.ALL)
    return Decision.allow(f'listing scoped to {scope.value}', RowFilter(scope, principal))


def _ownership_decision(principal, rule, facts):
    requirement = rule.ownership
    if requirement is Ownership.NONE:
        return Decision.allow('no ownership required')
    if principal.is_admin:
        return Decision.allow('admin')
    if facts is None:
        return Decision.deny('ownership facts unavailable', NotOwner)

    is_coach = principal.role is Role.COACH
    if requirement is Ownership.SELF:
        if facts.user_id is not None and principal.id == facts.user_id:
            return Decision.allow('owner')
    elif requirement is Ownership.ASSIGNED_COACH:
        if is_coach and principal.id in facts.coach_user_ids:
            return Decision.allow('assigned coach')
    elif requirement is Ownership.RELATED_PLAYER:
        if facts.player_user_id is not None and principal.id == facts.player_user_id:
            return Decision.allow('related player')
        if rule.coach_access and is_coach and principal.id in facts.coach_user_ids:
            return Decision.allow('related coach')
    elif requirement is Ownership.ENROLLED:
        if is_coach and principal.id in facts.coach_user_ids:
            return Decision.allow('assigned coach')
        if principal.role is Role.PLAYER and principal.id in facts.member_user_ids:
            return Decision.allow('enrolled player')
    return Decision.deny('not owner', NotOwner)


def check_role(principal, action, resource_type):
    """First half of ``evaluate``: the role check alone, without ownership."""
    rule = get_rule(resource_type, action)
    if rule is None:
        logger.error(f"No access rule for {resource_type}:{action}")
        return Decision.deny('no rule configured')
    if principal.role not in rule.allowed_roles:
        logger.info(f"Denied {principal.role.value} {principal.id}: "
                    f"{rule.action.value} {rule.resource_type.value}, role not permitted")
        return Decision.deny('role not permitted', RoleNotPermitted)
    return Decision.allow('role permitted')


def evaluate(principal, action, resource_type, facts=None):
    """Decide whether ``principal`` may perform ``action`` on a resource.

    ``facts`` is ``None`` for collection-level requests. A collection read
    is allowed with a ``RowFilter``; a create whose rule needs ownership is
    checked against the facts of the parent it is created under.
    """
    decision = check_role(principal, action, resource_type)
    if not decision.allowed:
        return decision

    rule = get_rule(resource_type, action)
    if facts is None and rule.action is Action.READ:
        return _collection_decision(principal, rule)

    decision = _ownership_decision(principal, rule, facts)
    if not decision.allowed:
        logger.info(f"Denied {principal.role.value} {principal.id}: "
                    f"{rule.action.value} {rule.resource_type.value}, {decision.reason}")
    return decision
