"""Error kinds raised by the contract core.

Every error is raised at the point of detection and carries a message fit
for showing to the user. None of them is retried automatically.
"""

from typing import Optional


class ContractError(Exception):
    """Base class for all contract core errors"""


class ValidationError(ContractError):
    """Input rejected before anything is persisted.

    ``fields`` lists the offending field keys when the failure is about
    specific template fields.
    """

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.fields = fields or []


class PermissionDenied(ContractError):
    """Verification gate refused the contract"""

    def __init__(self, reason: str, message: str, action: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.action = action


class InvalidTransition(ContractError):
    """Wrong actor, or the contract already left ``pending``"""


class NotFound(ContractError):
    """Unknown template id, contract id or escrow transaction"""


class PersistenceError(ContractError):
    """The data store failed; the current operation is abandoned"""


class TemplateDefinitionError(ContractError):
    """A template in the catalogue references a token nothing can resolve"""
