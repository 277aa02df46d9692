"""
Decorators for controller layer functionality.

This module provides decorators for transaction management and other
controller-level concerns.
"""

import functools
from typing import Any, Callable, Optional, TypeVar

from ..core import EventType

F = TypeVar('F', bound=Callable[..., Any])


def atomic(func: F) -> F:
    """
    Decorator to ensure atomic operations on the round state machine.

    A backup of the machine's state is taken before the decorated method
    runs. If an exception escapes, the state is restored to the backup and
    the exception is re-raised, so no money, pot or flag change survives
    a failed action.

    Args:
        func: The method to decorate. Must be a method of a class that has
              a _machine attribute exposing create_backup/restore_backup.

    Returns:
        The decorated function with atomic behavior.

    Example:
        @atomic
        def execute_action(self, action: ActionInput) -> ActionResult:
            # This operation will be rolled back if an exception occurs
            self._machine.bet(action.player_id, action.amount)
    """
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        machine = getattr(self, '_machine', None)
        if machine is None:
            raise AttributeError(
                f"@atomic decorator requires the class to have a '_machine' attribute. "
                f"Class {self.__class__.__name__} does not have this attribute."
            )

        if not (hasattr(machine, 'create_backup') and hasattr(machine, 'restore_backup')):
            raise TypeError(
                f"@atomic decorator requires '_machine' to support create_backup/restore_backup. "
                f"Got {type(machine).__name__} instead."
            )

        backup = machine.create_backup()

        try:
            return func(self, *args, **kwargs)
        except Exception as e:
            machine.restore_backup(backup)

            logger = getattr(self, '_logger', None)
            if logger:
                logger.warning(f"Transaction rolled back due to error: {e}")

            event_bus = getattr(self, '_event_bus', None)
            if event_bus is not None:
                event_bus.emit_simple(EventType.ERROR_OCCURRED, error=str(e), rolled_back=True)
            raise

    return wrapper


def logged_action(action_name: Optional[str] = None):
    """
    Decorator to automatically log controller actions.

    Args:
        action_name: Optional custom name for the action. If not provided,
                    the function name will be used.

    Returns:
        Decorator function.
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            logger = getattr(self, '_logger', None)
            name = action_name or func.__name__

            if logger:
                logger.debug(f"Starting {name}")

            try:
                result = func(self, *args, **kwargs)
            except Exception as e:
                if logger:
                    logger.error(f"Failed {name}: {e}")
                raise

            if logger:
                logger.debug(f"Completed {name}")
            return result

        return wrapper
    return decorator
