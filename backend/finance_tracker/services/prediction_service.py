"""
Service for predicting merchant names and categories of new transactions.

Predictions come from reviewed history: rows whose bank description matches
once digits are removed (store numbers, reference codes) vote on the merchant
name and category. A value is predicted only if it holds a strict majority.
"""

import logging
import re
from collections import Counter, defaultdict
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

from finance_tracker.services.ledger import is_hidden, normalize_name

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"\d+")


def normalize_plaid_name(plaid_name: Optional[str]) -> str:
    """Bank description with digits removed, lowercased and whitespace collapsed."""
    return normalize_name(_DIGITS_RE.sub("", plaid_name or ""))


def majority_value(values: List[Hashable]) -> Optional[Hashable]:
    """The value held by more than half of `values`, else None."""
    if not values:
        return None
    value, count = Counter(values).most_common(1)[0]
    if count * 2 > len(values):
        return value
    return None


def is_prediction_target(txn: Any) -> bool:
    """Unreviewed rows with neither a merchant name nor a category."""
    return (
        not getattr(txn, "reviewed", False)
        and getattr(txn, "merchant_name", None) is None
        and getattr(txn, "category", None) is None
    )


def build_predictions(transactions: Iterable[Any]) -> Dict[str, Tuple[Optional[str], Optional[str]]]:
    """
    Map each normalized plaid name to its predicted (merchant_name, category).

    Only visible rows that already carry a merchant name are used as history.
    Either side of the pair is None when no value has a strict majority.
    """
    names: Dict[str, List[Optional[str]]] = defaultdict(list)
    categories: Dict[str, List[Optional[str]]] = defaultdict(list)

    for txn in transactions:
        if is_hidden(txn) or getattr(txn, "merchant_name", None) is None:
            continue
        key = normalize_plaid_name(getattr(txn, "plaid_name", None))
        names[key].append(txn.merchant_name)
        categories[key].append(getattr(txn, "category", None))

    return {key: (majority_value(names[key]), majority_value(categories[key])) for key in names}


def predict_transactions(transactions: Iterable[Any]) -> List[Any]:
    """
    Fill in merchant_name and category on prediction targets, in place.

    Targets stay unreviewed. Returns the targets that received at least one
    predicted value.
    """
    transactions = list(transactions)
    predictions = build_predictions(transactions)

    updated = []
    for txn in transactions:
        if not is_prediction_target(txn):
            continue
        plaid_name = getattr(txn, "plaid_name", None)
        merchant_name, category = predictions.get(normalize_plaid_name(plaid_name), (None, None))

        logger.info("%s predicted with name: %s", plaid_name, merchant_name)
        logger.info("%s predicted with category: %s", plaid_name, category)

        if merchant_name is None and category is None:
            continue
        txn.merchant_name = merchant_name
        txn.category = category
        updated.append(txn)

    return updated
