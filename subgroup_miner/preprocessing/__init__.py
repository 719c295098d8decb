"""
Preprocessing Module

Turns raw tables into transactions:
- Bit vector columns from numeric columns or bit/hex/id strings
- Dense item ids and name mappings from transaction columns
"""
from .bitvector import BitVector
from .bitvector_generator import BitVectorGenerator, generate_bit_vectors
from .transaction_encoder import EncodedTransactions, TransactionEncoder, encode_transactions, detect_column_kind

__all__ = [
    'BitVector',
    'BitVectorGenerator', 'generate_bit_vectors',
    'EncodedTransactions', 'TransactionEncoder', 'encode_transactions', 'detect_column_kind'
]
