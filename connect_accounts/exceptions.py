"""Exceptions."""


class StoreFailure(RuntimeError):
    """The persistent store could not be reached or rejected a query."""


class ConstraintViolation(StoreFailure):
    """The store refused a write because it breaks a configured constraint."""


class NoSuchAccount(RuntimeError):
    """No account is registered with the given email address."""
