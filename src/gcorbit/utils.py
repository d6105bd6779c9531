"""
Utility functions and classes for the gcorbit package.
"""

import warnings
from typing import Type
from .config import config


class OrbitDiagnosticWarning(UserWarning):
    """
    Non-fatal physics diagnostic.

    Issued when a computation detects an inconsistency that does not stop it,
    e.g. a pitch cross-check mismatch or an orbit whose trace is ambiguous.
    Filter it like any other warning category:

    >>> import warnings
    >>> from gcorbit.utils import OrbitDiagnosticWarning
    >>> warnings.simplefilter("error", OrbitDiagnosticWarning)
    """


def diagnostic(message: str, stacklevel: int = 3):
    """Issue an OrbitDiagnosticWarning pointing at the caller's caller."""
    warnings.warn(message, OrbitDiagnosticWarning, stacklevel=stacklevel)


def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent validation behavior across the package.
    When STRICT_VALIDATION is True (default), raises the specified exception.
    When False, issues a UserWarning instead.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False

    Examples
    --------
    >>> from gcorbit.utils import validation_error
    >>> from gcorbit import config
    >>> config.STRICT_VALIDATION = True
    >>> validation_error("Pitch out of range")  # Raises ValueError

    >>> config.STRICT_VALIDATION = False
    >>> validation_error("Pitch out of range")  # Issues warning
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=3)
