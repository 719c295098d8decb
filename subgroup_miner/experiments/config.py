from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from pathlib import Path


@dataclass
class DataConfig:
    path: str
    name: str
    transaction_column: Optional[str] = None
    # collection cells stored as delimited strings in csv files
    item_separator: Optional[str] = None
    sep: str = ','

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'name': self.name,
            'transaction_column': self.transaction_column,
            'item_separator': self.item_separator,
            'sep': self.sep
        }


@dataclass
class BitVectorConfig:
    from_string: bool = False
    string_column: Optional[str] = None
    string_type: str = 'bit'
    columns: Optional[List[str]] = None
    threshold: float = 1.0
    use_mean: bool = False
    mean_percentage: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from_string': self.from_string,
            'string_column': self.string_column,
            'string_type': self.string_type,
            'columns': self.columns,
            'threshold': self.threshold,
            'use_mean': self.use_mean,
            'mean_percentage': self.mean_percentage
        }


@dataclass
class AprioriConfig:
    min_support: float = 0.9
    max_itemset_length: int = 10
    itemset_type: str = 'FREE'  # 'FREE', 'CLOSED', 'MAXIMAL'
    min_confidence: float = 0.8
    backend: str = 'array'  # 'array', 'prefix_tree'
    n_jobs: int = 1
    max_candidates: int = 5_000_000

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min_support': self.min_support,
            'max_itemset_length': self.max_itemset_length,
            'itemset_type': self.itemset_type,
            'min_confidence': self.min_confidence,
            'backend': self.backend,
            'n_jobs': self.n_jobs,
            'max_candidates': self.max_candidates
        }


@dataclass
class FilterConfig:
    metric: str
    threshold: float

    def to_dict(self) -> Dict[str, Any]:
        return {'metric': self.metric, 'threshold': self.threshold}


@dataclass
class RuleMiningConfig:
    miner_config: AprioriConfig = field(default_factory=AprioriConfig)
    mode: str = 'itemsets'  # 'rules', 'itemsets', 'both'
    filters: List[FilterConfig] = field(default_factory=list)
    sort_by: str = 'NONE'  # itemsets only, see postprocessing.rule.Sorter

    def to_dict(self) -> Dict[str, Any]:
        return {
            'miner_config': self.miner_config.to_dict(),
            'mode': self.mode,
            'filters': [f.to_dict() for f in self.filters],
            'sort_by': self.sort_by
        }


@dataclass
class ExperimentConfig:
    name: str
    data: DataConfig
    mining: RuleMiningConfig = field(default_factory=RuleMiningConfig)
    bit_vectors: Optional[BitVectorConfig] = None
    output_dir: str = "./out"

    def get_output_path(self) -> Path:
        path = Path(self.output_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path
