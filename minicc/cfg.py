"""Per-function control flow graphs.

A function's flat instruction list is cut into basic blocks at every
``LABEL`` and after every terminator.  The VM walks these blocks, so a
block either ends in a terminator or falls through to the next one in
source order.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .ir import TERMINATORS, IRInstruction, Opcode
from . import constants


@dataclass
class BasicBlock:
    label: str
    instructions: list[IRInstruction] = field(default_factory=list)
    successors: list[str] = field(default_factory=list)
    predecessors: list[str] = field(default_factory=list)

    @property
    def terminator(self) -> IRInstruction | None:
        if self.instructions and self.instructions[-1].opcode in TERMINATORS:
            return self.instructions[-1]
        return None


@dataclass
class CFG:
    blocks: dict[str, BasicBlock] = field(default_factory=dict)
    entry: str = constants.CFG_ENTRY_LABEL

    def link(self, src: str, dst: str):
        if dst not in self.blocks[src].successors:
            self.blocks[src].successors.append(dst)
        if src not in self.blocks[dst].predecessors:
            self.blocks[dst].predecessors.append(src)

    def __str__(self) -> str:
        lines = []
        for label, block in self.blocks.items():
            preds = ", ".join(block.predecessors) or "(none)"
            succs = ", ".join(block.successors) or "(none)"
            lines.append(f"[{label}]  preds={preds}  succs={succs}")
            lines.extend(f"  {inst}" for inst in block.instructions)
            lines.append("")
        return "\n".join(lines)


def _leaders(instructions: list[IRInstruction]) -> list[int]:
    leaders = {0}
    for i, inst in enumerate(instructions):
        if inst.opcode == Opcode.LABEL:
            leaders.add(i)
        elif inst.opcode in TERMINATORS and i + 1 < len(instructions):
            leaders.add(i + 1)
    return sorted(leaders)


def _split(instructions: list[IRInstruction]) -> list[BasicBlock]:
    leaders = _leaders(instructions)
    bounds = zip(leaders, leaders[1:] + [len(instructions)])
    blocks = []
    for start, end in bounds:
        body = instructions[start:end]
        if body and body[0].opcode == Opcode.LABEL:
            blocks.append(BasicBlock(label=body[0].label, instructions=body[1:]))
        else:
            blocks.append(BasicBlock(label=f"__block_{start}", instructions=body))
    return blocks


def build_cfg(instructions: list[IRInstruction]) -> CFG:
    """Partition one function's instructions into basic blocks and wire edges."""
    blocks = _split(instructions)
    cfg = CFG(blocks={block.label: block for block in blocks})

    for block, following in zip(blocks, blocks[1:] + [None]):
        term = block.terminator
        if term is None:
            if following is not None:
                cfg.link(block.label, following.label)
            continue
        for target in term.branch_targets():
            if target in cfg.blocks:
                cfg.link(block.label, target)

    if blocks:
        cfg.entry = blocks[0].label
    return cfg
