"""Exceptions raised by ormrel.

Every error carries a stable ``code`` and renders as ``"<code>: <message>"``.
"""


class OrmError(Exception):
    """Base class for all ormrel errors."""

    code: str = "E_RUNTIME_EXCEPTION"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"{self.code}: {message}")


class MissingModelAttributeError(OrmError):
    """A relation key does not exist on the entity that should carry it."""

    code = "E_MISSING_MODEL_ATTRIBUTE"

    def __init__(self, relation: str, expecting: str, attribute: str, missing_on: str):
        self.relation = relation
        self.attribute = attribute
        self.missing_on = missing_on
        super().__init__(
            f'"{expecting}.{relation}" expects "{attribute}" to exist on '
            f'"{missing_on}" model, but is missing'
        )


class UndefinedRelationshipError(OrmError):
    code = "E_UNDEFINED_RELATIONSHIP"

    def __init__(self, relation: str, model: str):
        self.relation = relation
        super().__init__(f'"{relation}" is not defined as a relationship on "{model}" model')


class MissingKeyValueError(OrmError):
    """An owner row lacks the value of the key a relation operation needs."""

    code = "E_MISSING_KEY_VALUE"

    def __init__(self, action: str, relation: str, model: str, key: str):
        self.relation = relation
        self.key = key
        message = f'Cannot {action} "{relation}", value of "{model}.{key}" is undefined'
        if action == "preload":
            message += f'. Make sure to select "{key}" in the parent query'
        super().__init__(message)


class PaginationError(OrmError):
    code = "E_PAGINATION"


class RowNotFoundError(OrmError):
    code = "E_ROW_NOT_FOUND"


class TransactionError(OrmError):
    """Raised for transaction-related misuse (finished or foreign transaction handles)."""

    code = "E_TRANSACTION"


class DialectCapabilityError(OrmError, NotImplementedError):
    code = "E_NOT_IMPLEMENTED"

    def __init__(self, feature: str, dialect: str):
        self.feature = feature
        self.dialect = dialect
        super().__init__(f"Support for {feature} is not implemented for {dialect}")


class UnsupportedDialectError(OrmError, ValueError):
    """No dialect handles the scheme of a connection URL."""

    code = "E_UNSUPPORTED_DIALECT"

    def __init__(self, scheme: str, supported: list[str]):
        self.scheme = scheme
        super().__init__(
            f"Unsupported database scheme: {scheme} (expected one of {', '.join(supported)})"
        )
