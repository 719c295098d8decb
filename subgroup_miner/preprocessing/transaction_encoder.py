"""
Transaction Encoder.

Turns one column of a DataFrame into the transactions the search engine
consumes. A bit-vector column is passed through; a collection-valued column
(lists, tuples, sets) is encoded against an item dictionary in which the
first occurrence of a value defines its item id.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Tuple

import numpy as np
import pandas as pd

from subgroup_miner.exceptions import ConfigurationError
from subgroup_miner.preprocessing.bitvector import BitVector, is_bit_vector_value
from subgroup_miner.rule_mining.itemset import Transaction, item_name
from subgroup_miner.rule_mining.progress import ExecutionMonitor, ensure_monitor

MAX_TRANSACTION_LENGTH = 2 ** 31 - 1

BIT_VECTOR = 'bitvector'
COLLECTION = 'collection'

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedTransactions:
    """Encoder output: the mining input plus the item-name lookup table."""
    transactions: Tuple[Transaction, ...]
    item_count: int
    name_mapping: Tuple[Any, ...]
    row_keys: Tuple[Hashable, ...] = ()
    processed_rows: int = 0
    skipped_rows: int = 0

    def __len__(self):
        return len(self.transactions)

    def row_key(self, tid: int) -> Hashable:
        """Index label of the source row of transaction ``tid``."""
        return self.row_keys[tid]

    def item_name(self, item: int) -> Any:
        return item_name(self.name_mapping, item)

    def to_onehot_frame(self) -> pd.DataFrame:
        """Boolean transactions x items frame, the layout one-hot miners expect."""
        matrix = np.zeros((len(self.transactions), self.item_count), dtype=bool)
        for row, transaction in enumerate(self.transactions):
            matrix[row, list(transaction.items)] = True
        columns = [str(self.item_name(i)) for i in range(self.item_count)]
        return pd.DataFrame(matrix, columns=columns, index=list(self.row_keys) or None)


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, set, frozenset, np.ndarray, BitVector)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_collection_value(value) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def _declared_names(attrs: Dict[str, Any], column: Hashable) -> Optional[List[Any]]:
    """Element names from ``attrs['element_names']``, either one list or a dict keyed by column."""
    names = attrs.get('element_names')
    if isinstance(names, dict):
        return names.get(column)
    return names


def detect_column_kind(rows: pd.Series) -> Optional[str]:
    """'bitvector', 'collection' or None when the column holds neither."""
    kinds = set()
    for value in rows:
        if _is_missing(value):
            continue
        if is_bit_vector_value(value):
            kinds.add(BIT_VECTOR)
        elif _is_collection_value(value):
            kinds.add(COLLECTION)
        else:
            return None
        if len(kinds) > 1:
            return None
    if not kinds:
        return None
    return kinds.pop()


class TransactionEncoder:
    """
    Encode a transaction column of a DataFrame.

    Args:
        column: Name of the transaction column; auto-guessed when None
        monitor: Progress and cancellation collaborator
        logger: Logger receiving debug output
    """

    def __init__(self, column: str = None, monitor: ExecutionMonitor = None, logger: logging.Logger = None):
        self.column = column
        self.monitor = ensure_monitor(monitor)
        self.logger = logger or _logger

    def guess_column(self, data: pd.DataFrame) -> str:
        candidates = [c for c in data.columns if detect_column_kind(data[c]) is not None]
        if not candidates:
            raise ConfigurationError(
                "Expecting at least one column containing transactions (bit vectors or collections)")
        if len(candidates) > 1:
            self.logger.warning("Auto-guessed the transaction column: %s", candidates[0])
        return candidates[0]

    def encode(self, data: pd.DataFrame) -> EncodedTransactions:
        column = self.column or self.guess_column(data)
        if column not in data.columns:
            raise ConfigurationError(f"Transaction column '{column}' not found in input table")
        rows = data[column]
        kind = detect_column_kind(rows)
        if kind == BIT_VECTOR:
            element_names = _declared_names(data.attrs, column)
            return self.encode_from_bit_column(rows, element_names)
        if kind == COLLECTION:
            return self.encode_from_collection_column(rows)
        raise ConfigurationError(f"Selected column '{column}' is not a possible transaction column")

    def encode_from_bit_column(self, rows: pd.Series, element_names: List[Any] = None) -> EncodedTransactions:
        """
        Pass-through encoding of a bit-vector column.

        The item count is the longest vector observed, raised to the number of
        element names declared through ``element_names`` or
        ``rows.attrs['element_names']``.
        """
        total = len(rows)
        transactions: List[Transaction] = []
        row_keys = []
        max_length = 0
        processed = 0
        for key, value in rows.items():
            self.monitor.check_cancelled()
            processed += 1
            if not _is_missing(value):
                if not is_bit_vector_value(value):
                    raise ConfigurationError(f"Row '{key}' does not contain a bit vector: {value!r}")
                vector = value if isinstance(value, BitVector) else BitVector.from_array(value)
                if vector.length > MAX_TRANSACTION_LENGTH:
                    raise ConfigurationError(
                        f"Bit vector in row '{key}' is too long: {vector.length}. "
                        f"Only bit vectors up to {MAX_TRANSACTION_LENGTH} are supported.")
                max_length = max(max_length, vector.length)
                transactions.append(Transaction(len(transactions), vector.set_bits))
                row_keys.append(key)
            self.monitor.report_progress(processed / total, f"preprocessing...{processed}")

        declared = element_names if element_names is not None else _declared_names(rows.attrs, rows.name)
        if declared:
            name_mapping = tuple(declared)
            item_count = max(max_length, len(name_mapping))
        else:
            item_count = max_length
            name_mapping = tuple(f"item{i}" for i in range(item_count))
        self.logger.debug("max length: %d", item_count)
        return EncodedTransactions(
            transactions=tuple(transactions),
            item_count=item_count,
            name_mapping=name_mapping,
            row_keys=tuple(row_keys),
            processed_rows=processed,
            skipped_rows=processed - len(transactions)
        )

    def encode_from_collection_column(self, rows: pd.Series) -> EncodedTransactions:
        """
        Two-pass encoding of a collection column.

        Pass 1 gives each distinct value the next unused item id in first-seen
        order; pass 2 builds one transaction per non-missing row.
        """
        item_ids: Dict[Hashable, int] = {}
        name_mapping = []
        for key, value in rows.items():
            if _is_missing(value):
                continue
            if not _is_collection_value(value):
                raise ConfigurationError(f"Row '{key}' does not contain a collection: {value!r}")
            self.monitor.check_cancelled()
            for element in value:
                try:
                    known = element in item_ids
                except TypeError:
                    raise ConfigurationError(f"Row '{key}' contains an unhashable item: {element!r}")
                if not known:
                    item_ids[element] = len(item_ids)
                    name_mapping.append(element)

        total = len(rows)
        transactions: List[Transaction] = []
        row_keys = []
        processed = 0
        for key, value in rows.items():
            self.monitor.check_cancelled()
            processed += 1
            if not _is_missing(value):
                if len(value) > MAX_TRANSACTION_LENGTH:
                    raise ConfigurationError(
                        f"Collection in row '{key}' is too long: {len(value)}. "
                        f"Only transactions up to {MAX_TRANSACTION_LENGTH} items are supported.")
                items = tuple(sorted({item_ids[element] for element in value}))
                transactions.append(Transaction(len(transactions), items))
                row_keys.append(key)
            self.monitor.report_progress(processed / total, f"preprocessing...{processed}")

        self.logger.debug("max length: %d", len(name_mapping))
        return EncodedTransactions(
            transactions=tuple(transactions),
            item_count=len(name_mapping),
            name_mapping=tuple(name_mapping),
            row_keys=tuple(row_keys),
            processed_rows=processed,
            skipped_rows=processed - len(transactions)
        )


def encode_transactions(data: pd.DataFrame, column: str = None, **kwargs) -> EncodedTransactions:
    return TransactionEncoder(column=column, **kwargs).encode(data)
