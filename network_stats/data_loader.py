# network_stats/data_loader.py
"""
Validation and alignment of in-memory input tables.
"""

import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)

NETWORK_COLUMNS = ('Source', 'Target', 'Similarity')


class DataLoader:
    """Validates and aligns in-memory networks, expression matrices and sample annotations."""

    def validate_network(self, net: pd.DataFrame, require_samples: bool = False) -> None:
        """
        Check that a network table carries the expected edge columns.

        Raises:
            KeyError: If Source, Target, Similarity (or Samples when required) are missing.
        """
        required = list(NETWORK_COLUMNS) + (['Samples'] if require_samples else [])
        missing = [c for c in required if c not in net.columns]
        if missing:
            raise KeyError(f"Network is missing required columns: {missing}")

    def validate_annotations(self, osa: pd.DataFrame, field: Optional[str] = None) -> None:
        """
        Check that the sample annotation table has a 'Sample' column and, if
        given, the requested annotation field.
        """
        if 'Sample' not in osa.columns:
            raise KeyError("Sample annotation table must contain a 'Sample' column.")
        if field is not None and field not in osa.columns:
            raise KeyError(f"Annotation field '{field}' not found in sample annotations.")

    def align_annotations(self, osa: pd.DataFrame, ematrix: pd.DataFrame) -> pd.DataFrame:
        """
        Align sample annotations to the column order of the expression matrix.

        Row k of the returned DataFrame describes expression column k, so
        decoded sample indexes can be used positionally on both tables.
        Samples without an annotation get missing values.

        Args:
            osa (pd.DataFrame): Sample annotations with a 'Sample' column.
            ematrix (pd.DataFrame): Expression matrix, samples as columns.

        Returns:
            pd.DataFrame: Annotations indexed by sample name in expression order.
        """
        self.validate_annotations(osa)

        duplicates = osa['Sample'].duplicated(keep=False)
        if duplicates.any():
            logger.warning(f"Found {duplicates.sum()} duplicate sample IDs. Keeping first occurrence.")
            osa = osa[~osa['Sample'].duplicated(keep='first')]

        aligned = osa.set_index('Sample').reindex(ematrix.columns)
        n_missing = int(aligned.isna().all(axis=1).sum())
        if n_missing:
            logger.debug(f"{n_missing} expression samples have no annotation.")
        return aligned

    def sample_names(self, ematrix: pd.DataFrame, sample_indexes: Iterable[int]) -> pd.Index:
        """Return the expression column names at the given zero-based positions."""
        indexes = np.asarray(list(sample_indexes), dtype=int)
        if indexes.size and (indexes.min() < 0 or indexes.max() >= ematrix.shape[1]):
            raise ValueError(
                f"Sample indexes out of range for an expression matrix with {ematrix.shape[1]} samples."
            )
        return ematrix.columns[indexes]
