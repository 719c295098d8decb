"""
Value objects shared by the search engine, the itemset store and the rule
generator.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from subgroup_miner.exceptions import ConfigurationError


class ItemSetType(Enum):
    """Which frequent itemsets a mining run reports."""
    FREE = 'FREE'
    CLOSED = 'CLOSED'
    MAXIMAL = 'MAXIMAL'

    @classmethod
    def parse(cls, value) -> 'ItemSetType':
        if isinstance(value, cls):
            return value
        name = str(value).strip().upper()
        if name == 'ALL':
            return cls.FREE
        try:
            return cls[name]
        except KeyError:
            valid = [t.name for t in cls] + ['ALL']
            raise ConfigurationError(f"Itemset type must be one of {valid}, got '{value}'")


def item_name(name_mapping: Optional[Sequence[Any]], item: int) -> Any:
    """Display name of an item id, falling back to ``item<i>``."""
    if name_mapping is not None and item < len(name_mapping):
        return name_mapping[item]
    return f"item{item}"


def canonical(items: Iterable[int]) -> Tuple[int, ...]:
    """Sorted, duplicate-free tuple of item ids."""
    return tuple(sorted(set(int(i) for i in items)))


@dataclass(frozen=True)
class Transaction:
    """Item ids present in one input row, in ascending order."""
    tid: int
    items: Tuple[int, ...]

    def __len__(self):
        return len(self.items)

    def __contains__(self, item):
        return item in self.items


@dataclass(frozen=True)
class FrequentItemSet:
    """
    A set of item ids together with its support.

    Two itemsets are equal iff their canonical item sequences are equal;
    support and count take no part in comparisons.
    """
    items: Tuple[int, ...]
    support: float = field(default=0.0, compare=False)
    count: int = field(default=0, compare=False)

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __contains__(self, item):
        return item in self.items

    @property
    def max_item(self) -> int:
        return self.items[-1]

    def without(self, item: int) -> Tuple[int, ...]:
        return tuple(i for i in self.items if i != item)

    def is_subset_of(self, other: 'FrequentItemSet') -> bool:
        return set(self.items).issubset(other.items)

    def to_dict(self, name_mapping: Sequence[Any] = None) -> Dict[str, Any]:
        return {
            'items': [item_name(name_mapping, i) for i in self.items],
            'item_ids': list(self.items),
            'support': self.support,
            'count': self.count,
            'length': len(self.items)
        }


@dataclass(frozen=True)
class AssociationRule:
    """A single-consequent rule ``antecedent -> consequent``."""
    antecedent: FrequentItemSet
    consequent: FrequentItemSet
    support: float
    confidence: float
    lift: float

    @property
    def consequent_item(self) -> int:
        return self.consequent.items[0]

    @property
    def consequent_support(self) -> float:
        return self.consequent.support

    @property
    def leverage(self) -> float:
        return self.support - self.antecedent.support * self.consequent.support

    @property
    def conviction(self) -> float:
        if self.confidence >= 1.0:
            return float('inf')
        return (1.0 - self.consequent.support) / (1.0 - self.confidence)

    @property
    def zhangs_metric(self) -> float:
        cons_support = self.consequent.support
        if 0 < cons_support < 1:
            if self.confidence >= cons_support:
                return (self.confidence - cons_support) / (1 - cons_support)
            return (self.confidence - cons_support) / cons_support
        return 0.0

    @property
    def interestingness(self) -> float:
        return self.support * self.confidence

    def to_dict(self, name_mapping: Sequence[Any] = None) -> Dict[str, Any]:
        return {
            'antecedents': [item_name(name_mapping, i) for i in self.antecedent.items],
            'consequent': item_name(name_mapping, self.consequent_item),
            'antecedent_ids': list(self.antecedent.items),
            'consequent_id': self.consequent_item,
            'support': self.support,
            'confidence': self.confidence,
            'lift': self.lift,
            'leverage': self.leverage,
            'conviction': self.conviction,
            'zhangs_metric': round(self.zhangs_metric, 4),
            'interestingness': round(self.interestingness, 4)
        }

    def __str__(self):
        ant = ', '.join(str(i) for i in self.antecedent.items)
        return (f"{{{ant}}} -> {{{self.consequent_item}}} "
                f"(supp={self.support:.3f}, conf={self.confidence:.3f}, lift={self.lift:.3f})")
