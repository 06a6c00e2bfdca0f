from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class Reflector:
    row: int
    col: int
    type: str
    is_decoy: bool = False

    @property
    def cell(self) -> Tuple[int, int]:
        return self.row, self.col

    def to_dict(self, include_decoy_flag: bool = True) -> Dict[str, object]:
        data: Dict[str, object] = {'row': self.row, 'col': self.col, 'type': self.type}
        if include_decoy_flag:
            data['is_decoy'] = self.is_decoy
        return data


@dataclass
class Scenario:
    """One playable board: entry, active reflectors in encounter order, exit."""

    entry_edge: str
    entry_index: int
    reflectors: List[Reflector]
    path: List[Tuple[int, int]]
    exit_zone: int
    exit_direction: str
    decoys: List[Reflector] = field(default_factory=list)

    @property
    def reflector_count(self) -> int:
        return len(self.reflectors)

    def occupied_cells(self) -> set:
        return {r.cell for r in self.reflectors} | {d.cell for d in self.decoys}

    def placements(self) -> List[Dict[str, object]]:
        # Real and decoy reflectors look identical while memorizing.
        merged = sorted(self.reflectors + self.decoys, key=lambda r: r.cell)
        return [r.to_dict(include_decoy_flag=False) for r in merged]

    def to_dict(self) -> Dict[str, object]:
        return {
            'entry_edge': self.entry_edge,
            'entry_index': self.entry_index,
            'reflectors': [r.to_dict() for r in self.reflectors],
            'decoys': [d.to_dict() for d in self.decoys],
            'path': [[row, col] for row, col in self.path],
            'exit_zone': self.exit_zone,
            'exit_direction': self.exit_direction,
        }
