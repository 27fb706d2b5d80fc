"""
V-fold cross-validation partitions shared by every model in a comparison.

All candidate models must be evaluated on the *same* folds: the pairing of
per-fold metrics across models is what lets the comparison treat fold
difficulty as a nuisance factor instead of noise.

Literature:
-----------
- Kuhn & Silge (2022) "Tidy Modeling with R" O'Reilly, ch. 10-11
- Kohavi (1995) "A Study of Cross-Validation and Bootstrap for Accuracy
  Estimation and Model Selection" IJCAI
"""

from dataclasses import dataclass
from typing import List, Optional
import numpy as np
from sklearn.model_selection import KFold, RepeatedKFold
from loguru import logger


@dataclass(frozen=True)
class Fold:
    """One resampling partition: an opaque id and its row indices."""
    fold_id: str
    train_indices: np.ndarray
    test_indices: np.ndarray

    @property
    def n_train(self) -> int:
        return len(self.train_indices)

    @property
    def n_test(self) -> int:
        return len(self.test_indices)


def fold_ids(n_splits: int, n_repeats: int = 1) -> List[str]:
    """
    Generate fold identifiers.

    Example:
    --------
    >>> fold_ids(3)
    ['Fold01', 'Fold02', 'Fold03']
    >>> fold_ids(2, n_repeats=2)
    ['Repeat1_Fold01', 'Repeat1_Fold02', 'Repeat2_Fold01', 'Repeat2_Fold02']
    """
    width = max(2, len(str(n_splits)))
    ids = []
    for repeat in range(1, n_repeats + 1):
        for split in range(1, n_splits + 1):
            fold = f"Fold{split:0{width}d}"
            ids.append(fold if n_repeats == 1 else f"Repeat{repeat}_{fold}")
    return ids


def make_folds(
    n_samples: int,
    n_splits: int = 10,
    n_repeats: int = 1,
    shuffle: bool = True,
    random_state: Optional[int] = None
) -> List[Fold]:
    """
    Create (repeated) V-fold cross-validation partitions.

    Parameters:
    -----------
    n_samples : int
        Number of rows in the dataset
    n_splits : int
        Number of folds V (default: 10)
    n_repeats : int
        Number of repeats of V-fold CV (default: 1)
    shuffle : bool
        Shuffle rows before splitting (ignored for repeats, which always shuffle)
    random_state : Optional[int]
        Random seed

    Returns:
    --------
    folds : List[Fold]
        n_splits * n_repeats folds

    Example:
    --------
    >>> folds = make_folds(100, n_splits=5, random_state=42)
    >>> print(folds[0].fold_id, folds[0].n_train, folds[0].n_test)
    Fold01 80 20
    """
    if n_splits < 2:
        raise ValueError(f"n_splits must be at least 2, got {n_splits}")
    if n_repeats < 1:
        raise ValueError(f"n_repeats must be at least 1, got {n_repeats}")
    if n_samples < n_splits:
        raise ValueError(
            f"Cannot split {n_samples} samples into {n_splits} folds"
        )

    if n_repeats == 1:
        splitter = KFold(
            n_splits=n_splits,
            shuffle=shuffle,
            random_state=random_state if shuffle else None
        )
    else:
        splitter = RepeatedKFold(
            n_splits=n_splits, n_repeats=n_repeats, random_state=random_state
        )

    ids = fold_ids(n_splits, n_repeats)
    folds = [
        Fold(fold_id=fid, train_indices=train_idx, test_indices=test_idx)
        for fid, (train_idx, test_idx) in zip(ids, splitter.split(np.arange(n_samples)))
    ]

    logger.debug(f"Created {len(folds)} folds for {n_samples} samples")
    return folds
