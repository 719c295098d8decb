import numpy as np
import pandas as pd
from typing import Any, Dict, List

from subgroup_miner.exceptions import ConfigurationError
from subgroup_miner.preprocessing.bitvector import BitVector


class BitVectorGenerator:
    """
    Build a bit-vector transaction column from numeric columns or strings.

    Numeric mode sets bit i when column i reaches the threshold (a fixed
    value, or a percentage of the column mean when ``use_mean``). String mode
    parses '0'/'1' strings, hex numbers or whitespace separated bit ids.
    """
    STRING_TYPES = ['bit', 'hex', 'id']
    NUMERIC_OUTPUT_COLUMN = 'BitVectors'

    def __init__(
        self,
        from_string: bool = False,
        string_column: str = None,
        string_type: str = 'bit',
        columns: List[str] = None,
        threshold: float = 1.0,
        use_mean: bool = False,
        mean_percentage: int = 100,
        replace: bool = False
    ):
        string_type = string_type.lower()
        if string_type not in self.STRING_TYPES:
            raise ConfigurationError(f"Illegal conversion type: '{string_type}'")
        if from_string and string_column is None:
            raise ConfigurationError("A string column must be specified")
        if columns is not None and not from_string and len(columns) == 0:
            raise ConfigurationError("No numeric input columns selected")

        self.from_string = from_string
        self.string_column = string_column
        self.string_type = string_type
        self.columns = columns
        self.threshold = threshold
        self.use_mean = use_mean
        self.mean_percentage = mean_percentage
        self.replace = replace

        self._numeric_cols = None
        self._means = None
        self._id_length = None
        self._fitted = False
        self.processed_rows = 0
        self.total_set_bits = 0
        self.total_unset_bits = 0

    @property
    def output_column(self) -> str:
        if not self.from_string:
            return self.NUMERIC_OUTPUT_COLUMN
        if self.replace:
            return self.string_column
        return f"{self.string_column}_bits"

    def _identify_numeric_cols(self, df: pd.DataFrame) -> List[str]:
        if self.columns is None:
            return [col for col in df.columns if pd.api.types.is_numeric_dtype(df[col])]
        for col in self.columns:
            if col not in df.columns:
                raise ConfigurationError(f"Column {col} not found in input table")
            if not pd.api.types.is_numeric_dtype(df[col]):
                raise ConfigurationError(f"Column {col} is not a numeric column")
        return list(self.columns)

    def fit(self, df: pd.DataFrame) -> 'BitVectorGenerator':
        if self.from_string:
            if self.string_column not in df.columns:
                raise ConfigurationError(
                    f"Selected string column {self.string_column} not in the input table")
            if not self.replace and self.output_column in df.columns:
                raise ConfigurationError(f"Column {self.output_column} already exists in table")
            if self.string_type == 'id':
                self._id_length = self._scan_max_pos(df[self.string_column])
        else:
            self._numeric_cols = self._identify_numeric_cols(df)
            if not self._numeric_cols:
                raise ConfigurationError("No numeric input columns available")
            if self.use_mean:
                # missing cells still count towards the row total
                self._means = {col: df[col].sum() / len(df) if len(df) else 0.0
                               for col in self._numeric_cols}
        self._fitted = True
        return self

    def _scan_max_pos(self, series: pd.Series) -> int:
        max_pos = -1
        for key, value in series.items():
            if value is None or (not isinstance(value, str) and pd.isna(value)):
                continue
            if not isinstance(value, str):
                raise ConfigurationError(f"Found incompatible type in row {key}")
            for token in value.split():
                try:
                    max_pos = max(max_pos, int(token))
                except ValueError:
                    # reported when the cell itself is parsed
                    continue
        return max_pos + 1

    def _parse(self, key, value) -> BitVector:
        if not isinstance(value, str):
            raise ConfigurationError(f"Found incompatible type in row {key}")
        try:
            if self.string_type == 'bit':
                return BitVector.from_bit_string(value)
            if self.string_type == 'hex':
                return BitVector.from_hex_string(value)
            return BitVector.from_id_string(value, self._id_length)
        except ConfigurationError as e:
            raise ConfigurationError(
                f"Errors during conversion of data in column '{self.string_column}', row {key}: {e}") from e

    def _from_strings(self, df: pd.DataFrame) -> pd.Series:
        vectors = []
        for key, value in df[self.string_column].items():
            self.processed_rows += 1
            if value is None or (not isinstance(value, str) and pd.isna(value)):
                vectors.append(None)
                continue
            vector = self._parse(key, value)
            self.total_set_bits += vector.cardinality
            self.total_unset_bits += vector.length - vector.cardinality
            vectors.append(vector)
        return pd.Series(vectors, index=df.index, name=self.output_column, dtype=object)

    def _from_numeric(self, df: pd.DataFrame) -> pd.Series:
        n_bits = len(self._numeric_cols)
        if self.use_mean:
            factor = self.mean_percentage / 100.0
            thresholds = [self._means[col] * factor for col in self._numeric_cols]
        else:
            thresholds = [self.threshold] * n_bits

        values = df[self._numeric_cols].to_numpy(dtype=float, na_value=float('nan'))
        # NaN compares False, so missing cells leave their bit unset
        bits = values >= np.asarray(thresholds, dtype=float)
        vectors = []
        for row in bits:
            vector = BitVector.from_array(row)
            self.processed_rows += 1
            self.total_set_bits += vector.cardinality
            self.total_unset_bits += n_bits - vector.cardinality
            vectors.append(vector)
        return pd.Series(vectors, index=df.index, name=self.output_column, dtype=object)

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if not self._fitted:
            raise RuntimeError("BitVectorGenerator must be fitted before transform")

        self.processed_rows = 0
        self.total_set_bits = 0
        self.total_unset_bits = 0
        if self.from_string:
            vectors = self._from_strings(df)
            element_names = None
        else:
            vectors = self._from_numeric(df)
            element_names = list(self._numeric_cols)

        result = df.copy()
        if self.replace:
            drop = [self.string_column] if self.from_string else self._numeric_cols
            result = result.drop(columns=[c for c in drop if c != self.output_column])
        result[self.output_column] = vectors

        declared = df.attrs.get('element_names')
        names = dict(declared) if isinstance(declared, dict) else {}
        if element_names is not None:
            names[self.output_column] = element_names
        result.attrs['element_names'] = names
        return result

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)

    def get_config(self) -> Dict[str, Any]:
        return {
            'from_string': self.from_string,
            'string_column': self.string_column,
            'string_type': self.string_type,
            'columns': self.columns,
            'threshold': self.threshold,
            'use_mean': self.use_mean,
            'mean_percentage': self.mean_percentage,
            'replace': self.replace
        }

    def get_stats(self) -> Dict[str, int]:
        return {
            'processed_rows': self.processed_rows,
            'total_set_bits': self.total_set_bits,
            'total_unset_bits': self.total_unset_bits
        }


def generate_bit_vectors(df: pd.DataFrame, **kwargs) -> pd.DataFrame:
    generator = BitVectorGenerator(**kwargs)
    return generator.fit_transform(df)
