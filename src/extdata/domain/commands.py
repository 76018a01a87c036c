"""Command descriptors for user-initiated mutating actions.

A ``CommandWrapper`` names an action verb and a target entity. It is
classified once, at construction, into an ``(Action, EntityCategory,
Cardinality)`` tuple; every predicate below is a comparison over that tuple.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional

from extdata.domain.errors import ValidationError


class Action(Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    REGISTER = "REGISTER"
    DEREGISTER = "DEREGISTER"
    PERMISSIONS = "PERMISSIONS"
    APPROVE = "APPROVE"
    APPROVALUNDO = "APPROVALUNDO"
    REJECT = "REJECT"
    WITHDRAW = "WITHDRAW"
    WITHDRAWAL = "WITHDRAWAL"
    DISBURSE = "DISBURSE"
    DISBURSALUNDO = "DISBURSALUNDO"
    REPAYMENT = "REPAYMENT"
    ADJUST = "ADJUST"
    WAIVEINTERESTPORTION = "WAIVEINTERESTPORTION"
    WRITEOFF = "WRITEOFF"
    CLOSE = "CLOSE"
    CLOSEASRESCHEDULED = "CLOSEASRESCHEDULED"
    WAIVE = "WAIVE"
    UPDATELOANOFFICER = "UPDATELOANOFFICER"
    REMOVELOANOFFICER = "REMOVELOANOFFICER"
    BULKREASSIGN = "BULKREASSIGN"
    REVERSE = "REVERSE"
    UNASSIGNSTAFF = "UNASSIGNSTAFF"
    DEPOSIT = "DEPOSIT"
    INTEREST = "INTEREST"
    RENEW = "RENEW"
    OTHER = "OTHER"


class EntityCategory(Enum):
    CONFIGURATION = "CONFIGURATION"
    PERMISSION = "PERMISSION"
    ROLE = "ROLE"
    USER = "USER"
    CURRENCY = "CURRENCY"
    CODE = "CODE"
    CODEVALUE = "CODEVALUE"
    STAFF = "STAFF"
    GUARANTOR = "GUARANTOR"
    GLACCOUNT = "GLACCOUNT"
    GLCLOSURE = "GLCLOSURE"
    JOURNALENTRY = "JOURNALENTRY"
    FUND = "FUND"
    OFFICE = "OFFICE"
    OFFICETRANSACTION = "OFFICETRANSACTION"
    CHARGE = "CHARGE"
    LOANPRODUCT = "LOANPRODUCT"
    CLIENT = "CLIENT"
    CLIENTIDENTIFIER = "CLIENTIDENTIFIER"
    LOAN = "LOAN"
    LOANCHARGE = "LOANCHARGE"
    DEPOSITPRODUCT = "DEPOSITPRODUCT"
    DEPOSITACCOUNT = "DEPOSITACCOUNT"
    SAVINGSPRODUCT = "SAVINGSPRODUCT"
    SAVINGSACCOUNT = "SAVINGSACCOUNT"
    CALENDAR = "CALENDAR"
    GROUP = "GROUP"
    CLIENTNOTE = "CLIENTNOTE"
    LOANNOTE = "LOANNOTE"
    LOANTRANSACTIONNOTE = "LOANTRANSACTIONNOTE"
    DEPOSITNOTE = "DEPOSITNOTE"
    SAVINGNOTE = "SAVINGNOTE"
    GROUPNOTE = "GROUPNOTE"
    DATATABLE = "DATATABLE"
    DATATABLE_ENTRY = "DATATABLE_ENTRY"
    OTHER = "OTHER"


class Cardinality(Enum):
    NONE = "NONE"
    SINGLE = "SINGLE"
    MULTIPLE = "MULTIPLE"


NOTE_ENTITIES = frozenset(
    {
        EntityCategory.CLIENTNOTE,
        EntityCategory.LOANNOTE,
        EntityCategory.LOANTRANSACTIONNOTE,
        EntityCategory.DEPOSITNOTE,
        EntityCategory.SAVINGNOTE,
        EntityCategory.GROUPNOTE,
    }
)

# Entities whose update applies to the whole collection, so no id is needed.
COLLECTION_UPDATE_ENTITIES = frozenset({EntityCategory.PERMISSION, EntityCategory.CURRENCY})


class CommandCategory(NamedTuple):
    action: Action
    entity: EntityCategory
    cardinality: Cardinality

    def matches(
        self,
        action: Optional[Action] = None,
        entity: Optional[EntityCategory] = None,
        cardinality: Optional[Cardinality] = None,
    ) -> bool:
        """Return True when every given component equals this category's."""
        return (
            (action is None or self.action is action)
            and (entity is None or self.entity is entity)
            and (cardinality is None or self.cardinality is cardinality)
        )


def _parse_enum(enum_cls, name: Optional[str]):
    try:
        return enum_cls(name.strip().upper())
    except (ValueError, AttributeError):
        return enum_cls.OTHER


def categorize(
    action_name: str,
    entity_name: str,
    resource_id: Optional[int] = None,
    apptable_id: Optional[int] = None,
    datatable_id: Optional[int] = None,
) -> CommandCategory:
    """Classify a command by its verb, target and identifiers.

    A command carrying an ``apptable_id`` targets rows of a datatable whose
    name is the entity name, so the entity name itself is not interpreted.
    """
    action = _parse_enum(Action, action_name)
    if apptable_id is not None:
        cardinality = Cardinality.MULTIPLE if datatable_id is not None else Cardinality.SINGLE
        return CommandCategory(action, EntityCategory.DATATABLE_ENTRY, cardinality)

    entity = _parse_enum(EntityCategory, entity_name)
    cardinality = Cardinality.SINGLE if resource_id is not None else Cardinality.NONE
    return CommandCategory(action, entity, cardinality)


@dataclass(frozen=True)
class CommandWrapper:
    """Normalized description of a single user-initiated mutating action."""

    action_name: str
    entity_name: str
    resource_id: Optional[int] = None
    apptable_id: Optional[int] = None
    datatable_id: Optional[int] = None
    command_id: Optional[int] = None
    href: Optional[str] = None
    json: Optional[str] = None
    category: CommandCategory = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self,
            "category",
            categorize(
                self.action_name,
                self.entity_name,
                resource_id=self.resource_id,
                apptable_id=self.apptable_id,
                datatable_id=self.datatable_id,
            ),
        )

    @classmethod
    def wrap(cls, action_name: str, entity_name: str, resource_id: Optional[int] = None) -> "CommandWrapper":
        return cls(action_name=action_name, entity_name=entity_name, resource_id=resource_id)

    @classmethod
    def from_existing_command(
        cls, command_id: int, action_name: str, entity_name: str, resource_id: Optional[int] = None
    ) -> "CommandWrapper":
        return cls(
            action_name=action_name,
            entity_name=entity_name,
            resource_id=resource_id,
            command_id=command_id,
        )

    @property
    def task_permission_name(self) -> str:
        """Permission name checked before dispatch, e.g. ``CREATE_client_extra``."""
        return f"{self.action_name}_{self.entity_name}"

    def matches(
        self,
        action: Optional[Action] = None,
        entity: Optional[EntityCategory] = None,
        cardinality: Optional[Cardinality] = None,
    ) -> bool:
        return self.category.matches(action, entity, cardinality)

    @property
    def is_create(self) -> bool:
        return self.category.action is Action.CREATE

    @property
    def is_update_operation(self) -> bool:
        return self.category.action is Action.UPDATE

    @property
    def is_update(self) -> bool:
        if not self.is_update_operation:
            return False
        return self.resource_id is not None or self.category.entity in COLLECTION_UPDATE_ENTITIES

    @property
    def is_delete(self) -> bool:
        # Datatable entry commands address rows by apptable_id, not resource_id.
        return self.category.action is Action.DELETE and self.resource_id is not None

    @property
    def is_update_role_permissions(self) -> bool:
        return self.category.action is Action.PERMISSIONS and self.resource_id is not None

    @property
    def is_datatable_resource(self) -> bool:
        return self.category.entity is EntityCategory.DATATABLE_ENTRY

    @property
    def is_update_one_to_one(self) -> bool:
        return self.matches(Action.UPDATE, EntityCategory.DATATABLE_ENTRY, Cardinality.SINGLE)

    @property
    def is_update_multiple(self) -> bool:
        return self.matches(Action.UPDATE, EntityCategory.DATATABLE_ENTRY, Cardinality.MULTIPLE)

    @property
    def is_delete_one_to_one(self) -> bool:
        return self.matches(Action.DELETE, EntityCategory.DATATABLE_ENTRY, Cardinality.SINGLE)

    @property
    def is_delete_multiple(self) -> bool:
        return self.matches(Action.DELETE, EntityCategory.DATATABLE_ENTRY, Cardinality.MULTIPLE)

    @property
    def is_note_resource(self) -> bool:
        return self.category.entity in NOTE_ENTITIES

    def is_update_of_own_user_details(self, logged_in_user_id: int) -> bool:
        return (
            self.category.entity is EntityCategory.USER
            and self.is_update
            and self.resource_id == logged_in_user_id
        )


class CommandWrapperBuilder:
    """Fluent builder for commands, mirroring the inbound request layer."""

    def __init__(self):
        self._action_name: Optional[str] = None
        self._entity_name: Optional[str] = None
        self._resource_id: Optional[int] = None
        self._apptable_id: Optional[int] = None
        self._datatable_id: Optional[int] = None
        self._href: Optional[str] = None
        self._json: Optional[str] = None

    def with_json(self, payload: Any) -> "CommandWrapperBuilder":
        self._json = payload if isinstance(payload, str) or payload is None else json.dumps(payload)
        return self

    def register_datatable(self, datatable: str, parent_entity_type: str) -> "CommandWrapperBuilder":
        self._action_name = Action.REGISTER.value
        self._entity_name = EntityCategory.DATATABLE.value
        self._href = f"/datatables/register/{datatable}/{parent_entity_type}"
        return self.with_json({"datatable": datatable, "apptable": parent_entity_type})

    def deregister_datatable(self, datatable: str) -> "CommandWrapperBuilder":
        self._action_name = Action.DEREGISTER.value
        self._entity_name = EntityCategory.DATATABLE.value
        self._href = f"/datatables/deregister/{datatable}"
        return self.with_json({"datatable": datatable})

    def create_datatable_entry(self, datatable: str, apptable_id: int) -> "CommandWrapperBuilder":
        return self._datatable_entry(Action.CREATE, datatable, apptable_id)

    def update_datatable_entry(
        self, datatable: str, apptable_id: int, datatable_id: Optional[int] = None
    ) -> "CommandWrapperBuilder":
        return self._datatable_entry(Action.UPDATE, datatable, apptable_id, datatable_id)

    def delete_datatable_entry(
        self, datatable: str, apptable_id: int, datatable_id: Optional[int] = None
    ) -> "CommandWrapperBuilder":
        return self._datatable_entry(Action.DELETE, datatable, apptable_id, datatable_id)

    def _datatable_entry(
        self, action: Action, datatable: str, apptable_id: int, datatable_id: Optional[int] = None
    ) -> "CommandWrapperBuilder":
        self._action_name = action.value
        self._entity_name = datatable
        self._apptable_id = apptable_id
        self._datatable_id = datatable_id
        self._href = f"/datatables/{datatable}/{apptable_id}"
        if datatable_id is not None:
            self._href += f"/{datatable_id}"
        return self

    def build(self) -> CommandWrapper:
        if self._action_name is None or self._entity_name is None:
            raise ValidationError("Command action and entity must be set before building")
        return CommandWrapper(
            action_name=self._action_name,
            entity_name=self._entity_name,
            resource_id=self._resource_id,
            apptable_id=self._apptable_id,
            datatable_id=self._datatable_id,
            href=self._href,
            json=self._json,
        )


@dataclass(frozen=True)
class JsonCommand:
    """A command with its assigned id and parsed payload, handed to a handler."""

    wrapper: CommandWrapper
    command_id: Optional[int]
    payload: dict[str, Any]

    @classmethod
    def from_wrapper(cls, wrapper: CommandWrapper, command_id: Optional[int] = None) -> "JsonCommand":
        """Parse the wrapper's JSON body.

        Raises:
            ValidationError: If the body is not a JSON object
        """
        if not wrapper.json:
            return cls(wrapper=wrapper, command_id=command_id, payload={})
        try:
            payload = json.loads(wrapper.json)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Malformed JSON payload: {e.msg}") from e
        if not isinstance(payload, dict):
            raise ValidationError("JSON payload must be an object")
        return cls(wrapper=wrapper, command_id=command_id, payload=payload)

    @property
    def entity_name(self) -> str:
        return self.wrapper.entity_name

    @property
    def apptable_id(self) -> Optional[int]:
        return self.wrapper.apptable_id

    @property
    def datatable_id(self) -> Optional[int]:
        return self.wrapper.datatable_id

    def string_value(self, key: str) -> str:
        value = self.payload.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"Parameter '{key}' is required")
        return value.strip()
