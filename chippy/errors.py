"""Exceptions raised by the CHIP-8 interpreter."""

from chippy.constants import FAULT_NONE, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW, STACK_SIZE


class ChippyError(Exception):
    """Base class for interpreter errors."""


class ProgramTooLargeError(ChippyError, ValueError):
    """Program does not fit between the load address and the end of memory."""

    def __init__(self, size: int, capacity: int):
        super().__init__(f"Program is {size} bytes but only {capacity} bytes fit in memory")
        self.size = size
        self.capacity = capacity


class MachineFault(ChippyError):
    """The running program put the machine in a state it cannot continue from.

    Attributes:
        pc: Address of the instruction that faulted
    """

    def __init__(self, message: str, pc: int):
        super().__init__(f"{message} at 0x{pc:03X}")
        self.pc = pc


class StackOverflowError(MachineFault):
    """Subroutine call with all stack entries in use."""

    def __init__(self, pc: int):
        super().__init__(f"Stack overflow (depth {STACK_SIZE})", pc)


class StackUnderflowError(MachineFault):
    """Return with an empty stack."""

    def __init__(self, pc: int):
        super().__init__("Stack underflow", pc)


FAULT_ERRORS = {
    FAULT_STACK_OVERFLOW: StackOverflowError,
    FAULT_STACK_UNDERFLOW: StackUnderflowError,
}


def raise_for_fault(state) -> None:
    """Raise the exception matching ``state.fault``, if any."""
    code = int(state.fault)
    if code == FAULT_NONE:
        return
    # pc already points past the faulting instruction
    raise FAULT_ERRORS[code]((int(state.pc) - 2) & 0xFFFF)
