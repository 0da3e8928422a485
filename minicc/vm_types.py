"""VM — data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field

from .memory import Memory


@dataclass
class Activation:
    """One live call. Locals live in stack memory at ``frame_pointer``; only
    virtual registers are kept here."""

    function_name: str
    frame_pointer: int
    saved_frame_pointer: int
    return_token: int
    registers: dict[str, int] = field(default_factory=dict)
    return_label: str | None = None  # caller block to resume
    return_ip: int | None = None  # ip to resume at in caller block
    result_reg: str | None = None  # caller's register for return value

    def to_dict(self) -> dict:
        return {
            "function_name": self.function_name,
            "frame_pointer": self.frame_pointer,
            "registers": dict(self.registers),
            "return_label": self.return_label,
        }


@dataclass
class VMState:
    """Activations form an arena indexed by depth; the last entry is running."""

    memory: Memory
    sp: int
    activations: list[Activation] = field(default_factory=list)
    output: list[str] = field(default_factory=list)
    exit_value: int | None = None
    token_counter: int = 0

    def fresh_token(self) -> int:
        self.token_counter += 1
        return self.token_counter

    @property
    def current(self) -> Activation:
        return self.activations[-1]

    @property
    def depth(self) -> int:
        return len(self.activations)

    @property
    def stdout(self) -> str:
        return "".join(self.output)

    def to_dict(self) -> dict:
        return {
            "sp": self.sp,
            "activations": [a.to_dict() for a in self.activations],
            "output": self.stdout,
            "exit_value": self.exit_value,
        }
