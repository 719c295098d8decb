"""
Rule Mining Module

Level-wise frequent itemset search over bit-vector transactions:
- Frequent itemset mining (free, closed and maximal itemsets)
- Single-consequent association rules scored by support, confidence and lift
"""
